"""
Ledger wiring -- one place that assembles the tax path.

``build_ledger`` composes RateResolver, TreasuryPoster and TaxCalculator
over a session factory.  ``bootstrap`` additionally configures logging,
the engine, and append-only enforcement from a ``TreasuryConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from treasury_kernel.config import TreasuryConfig
from treasury_kernel.db.engine import get_session_factory, init_engine_from_url
from treasury_kernel.db.immutability import register_immutability_listeners
from treasury_kernel.domain.rates import DEFAULT_TAX_RATES, TaxRates
from treasury_kernel.logging_config import configure_logging
from treasury_kernel.services.rate_resolver import RateResolver
from treasury_kernel.services.tax_calculator import TaxCalculator
from treasury_kernel.services.treasury_poster import TreasuryPoster


@dataclass(frozen=True)
class Ledger:
    session_factory: sessionmaker[Session]
    defaults: TaxRates
    resolver: RateResolver
    poster: TreasuryPoster
    calculator: TaxCalculator


def build_ledger(
    session_factory: sessionmaker[Session],
    defaults: TaxRates = DEFAULT_TAX_RATES,
) -> Ledger:
    resolver = RateResolver(session_factory, defaults)
    poster = TreasuryPoster(session_factory)
    return Ledger(
        session_factory=session_factory,
        defaults=defaults,
        resolver=resolver,
        poster=poster,
        calculator=TaxCalculator(session_factory, resolver=resolver, poster=poster),
    )


def bootstrap(config: TreasuryConfig) -> Ledger:
    """Initialize logging and the database engine, then build the ledger."""
    configure_logging(level=config.log_level)
    init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    register_immutability_listeners()
    return build_ledger(get_session_factory(), config.tax_defaults)
