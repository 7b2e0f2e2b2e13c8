import sys
from pathlib import Path

import pytest

# Ensure the src directory (for `stagevault.*`) and the stubs directory are
# on the Python path before collection runs.
project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(project_root / "src"))

stubs = Path(__file__).parent / "stubs"
if stubs.exists():
    sys.path.insert(0, str(stubs))

from fixed_rate_router import FixedRateRouter  # noqa: E402
from vault_fixtures import (  # noqa: E402
    DEPLOYER,
    MINTER,
    OTHER,
    PRIMARY,
    PRIMARY_FUNDING,
    ROUTER,
    SECONDARY,
    STABLE,
    T0,
    VAULT,
    WRAPPED_NATIVE,
    build_config,
)

from stagevault.core.contracts.erc20 import create_token  # noqa: E402
from stagevault.core.contracts.native_ledger import NativeLedger  # noqa: E402
from stagevault.core.treasury_vault import StagedTreasury  # noqa: E402
from stagevault.core.vault_state import ManualClock  # noqa: E402


@pytest.fixture
def clock():
    return ManualClock(T0)


@pytest.fixture
def config():
    return build_config()


@pytest.fixture
def primary():
    return create_token(MINTER, "Primary", "PRI", address=PRIMARY)


@pytest.fixture
def secondary():
    return create_token(MINTER, "Secondary", "SEC", address=SECONDARY)


@pytest.fixture
def stable():
    return create_token(MINTER, "Stable", "USD", address=STABLE)


@pytest.fixture
def other_token():
    return create_token(MINTER, "Other", "OTH", address=OTHER)


@pytest.fixture
def native():
    return NativeLedger()


@pytest.fixture
def router(clock, native, primary, secondary, stable, other_token):
    """Router with deep liquidity: 1 PRI = 2 native = 3 USD; 1 native = 5 SEC; 1 USD = 4 SEC."""
    router = FixedRateRouter(
        address=ROUTER,
        clock=clock,
        native=native,
        wrapped_native=WRAPPED_NATIVE,
        tokens={PRIMARY: primary, SECONDARY: secondary, STABLE: stable, OTHER: other_token},
        rates={
            (PRIMARY, WRAPPED_NATIVE): (2, 1),
            (WRAPPED_NATIVE, SECONDARY): (5, 1),
            (WRAPPED_NATIVE, OTHER): (1, 1),
            (PRIMARY, STABLE): (3, 1),
            (STABLE, SECONDARY): (4, 1),
            (STABLE, OTHER): (1, 2),
        },
    )
    native.credit(ROUTER, 10**9)
    for token in (secondary, stable, other_token):
        token.mint(MINTER, ROUTER, 10**9)
    return router


@pytest.fixture
def vault(config, clock, primary, secondary, stable, native, router):
    """Vault deployed at T0 by DEPLOYER and funded with enough primary for every stage."""
    vault = StagedTreasury(
        config,
        DEPLOYER,
        primary,
        secondary,
        address=VAULT,
        router=router,
        native=native,
        stable_token=stable,
        clock=clock,
    )
    primary.mint(MINTER, VAULT, PRIMARY_FUNDING)
    return vault
