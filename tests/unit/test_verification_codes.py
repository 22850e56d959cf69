"""Unit tests for certificate verification code generation."""

import re
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config import Settings
from src.engines.caching import TTLCache
from src.engines.certificates import CertificateIssuer, generate_verification_code
from src.kernel.errors import ExhaustedRetries
from src.kernel.identity import Identity, StaticIdentityResolver

CODE_RE = re.compile(r"^[A-Z0-9]{3}-[A-Z0-9]{3}-[A-Z0-9]{3}-[A-Z0-9]{3}$")


def _issuer(store) -> CertificateIssuer:
    return CertificateIssuer(
        store,
        TTLCache(),
        StaticIdentityResolver(Identity(user_id=uuid.uuid4())),
        Settings(verification_code_max_attempts=10),
    )


def test_code_format():
    for _ in range(50):
        assert CODE_RE.match(generate_verification_code())


@pytest.mark.asyncio
async def test_thousand_issued_codes_are_distinct():
    issued = set()

    async def count(model, spec):
        code = next(f.value for f in spec.filters if f.field == "verification_code")
        return int(code in issued)

    store = MagicMock()
    store.count = AsyncMock(side_effect=count)
    issuer = _issuer(store)
    for _ in range(1000):
        issued.add(await issuer.unique_verification_code())
    assert len(issued) == 1000
    assert store.count.await_count >= 1000


@pytest.mark.asyncio
async def test_first_free_code_is_used():
    store = MagicMock()
    store.count = AsyncMock(side_effect=[1, 1, 0])
    code = await _issuer(store).unique_verification_code()
    assert CODE_RE.match(code)
    assert store.count.await_count == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    store = MagicMock()
    store.count = AsyncMock(return_value=1)
    with pytest.raises(ExhaustedRetries):
        await _issuer(store).unique_verification_code()
    assert store.count.await_count == 10
