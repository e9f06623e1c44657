"""
TaxCalculator -- the four tax entry points used by economic handlers.

Responsibility:
    For an item purchase, stock trade, transfer, or income payout:
    resolve the class's rates, compute ``floor(amount * rate)``, post a
    positive tax to the treasury, and return the split to the caller.

Architecture position:
    Kernel > Services -- the public face of the ledger.  Composes
    RateResolver (rates) and TreasuryPoster (posting).

Invariants enforced:
    - ``tax + net == amount`` for every returned result.
    - No posting is attempted when the computed tax is zero.
    - Availability over collection: if rates cannot be used, posting
      fails, or anything else goes wrong, the caller receives the
      zero-tax result (tax 0, net = full amount).  Nothing raises.

Failure modes:
    None surface.  Failures are logged as ``tax_not_applied`` (poster
    returned False) or ``tax_application_failed`` (unexpected error).
"""

from collections.abc import Callable
from decimal import Decimal
from operator import attrgetter

from sqlalchemy.orm import Session, sessionmaker

from treasury_kernel.domain.categories import IncomeType, TaxCategory
from treasury_kernel.domain.rates import TaxRates
from treasury_kernel.domain.tax_math import IncomeTaxResult, TaxResult, compute_tax
from treasury_kernel.logging_config import LogContext, get_logger
from treasury_kernel.services.rate_resolver import RateResolver
from treasury_kernel.services.treasury_poster import TreasuryPoster
from treasury_kernel.services.unit_of_work import UnitOfWork

logger = get_logger("services.tax_calculator")

AmbientUnitOfWork = UnitOfWork | Session | None


def income_rate(rates: TaxRates, income_type: str | None) -> Decimal:
    """Pick the rate for an income type; unknown or missing types use the income rate."""
    if income_type == IncomeType.SALARY:
        return rates.salary
    if income_type == IncomeType.REWARD:
        return rates.reward
    return rates.income


class TaxCalculator:
    """
    Computes and collects class taxes.

    Contract:
        Each ``apply_*`` method takes the class code, the acting user, the
        amount, a category discriminator and an optional ambient unit of
        work (a caller Session to join), and returns a frozen result.

    Non-goals:
        - Does NOT credit or debit user balances; callers use the net figure.
        - Does NOT deduplicate retries.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        resolver: RateResolver | None = None,
        poster: TreasuryPoster | None = None,
    ):
        self._resolver = resolver or RateResolver(session_factory)
        self._poster = poster or TreasuryPoster(session_factory)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def apply_item_tax(
        self,
        class_code: str,
        user_id: str,
        amount: int,
        is_marketplace: bool = False,
        unit_of_work: AmbientUnitOfWork = None,
    ) -> TaxResult:
        """Tax an item sale: marketplace transaction rate or store VAT."""
        if is_marketplace:
            category = TaxCategory.ITEM_MARKET
            pick = attrgetter("item_market_transaction")
            description = f"Item marketplace transaction tax: {amount}"
        else:
            category = TaxCategory.ITEM_STORE
            pick = attrgetter("item_store_vat")
            description = f"Item store VAT: {amount}"

        tax, net = self._levy(
            operation="item_tax",
            class_code=class_code,
            user_id=user_id,
            amount=amount,
            category=category,
            pick_rate=pick,
            description=description,
            unit_of_work=unit_of_work,
        )
        return TaxResult(original_amount=amount, tax_amount=tax, net_amount=net)

    def apply_stock_tax(
        self,
        class_code: str,
        user_id: str,
        amount: int,
        transaction_type: str,
        unit_of_work: AmbientUnitOfWork = None,
    ) -> TaxResult:
        """Tax a stock trade.  ``transaction_type`` (buy/sell) is descriptive only."""
        tax, net = self._levy(
            operation="stock_tax",
            class_code=class_code,
            user_id=user_id,
            amount=amount,
            category=TaxCategory.STOCK,
            pick_rate=attrgetter("stock_transaction"),
            description=f"Stock {transaction_type} transaction tax: {amount}",
            unit_of_work=unit_of_work,
        )
        return TaxResult(original_amount=amount, tax_amount=tax, net_amount=net)

    def apply_transaction_tax(
        self,
        class_code: str,
        user_id: str,
        amount: int,
        transaction_type: str,
        unit_of_work: AmbientUnitOfWork = None,
    ) -> TaxResult:
        """Tax a transfer or other generic transaction."""
        tax, net = self._levy(
            operation="transaction_tax",
            class_code=class_code,
            user_id=user_id,
            amount=amount,
            category=TaxCategory.TRANSACTION,
            pick_rate=attrgetter("transaction"),
            description=f"{transaction_type} transaction tax: {amount} transferred",
            unit_of_work=unit_of_work,
        )
        return TaxResult(original_amount=amount, tax_amount=tax, net_amount=net)

    def apply_income_tax(
        self,
        class_code: str,
        user_id: str,
        income: int,
        income_type: str | None = None,
        unit_of_work: AmbientUnitOfWork = None,
    ) -> IncomeTaxResult:
        """Tax income: salary rate, reward rate, or the generic income rate."""
        tax, net = self._levy(
            operation="income_tax",
            class_code=class_code,
            user_id=user_id,
            amount=income,
            category=TaxCategory.INCOME,
            pick_rate=lambda rates: income_rate(rates, income_type),
            description=f"{income_type or 'other'} income tax: {income} earned",
            unit_of_work=unit_of_work,
        )
        return IncomeTaxResult(gross_income=income, tax_amount=tax, net_income=net)

    # ------------------------------------------------------------------
    # Shared pipeline
    # ------------------------------------------------------------------

    def _levy(
        self,
        *,
        operation: str,
        class_code: str,
        user_id: str,
        amount: int,
        category: TaxCategory,
        pick_rate: Callable[[TaxRates], Decimal],
        description: str,
        unit_of_work: AmbientUnitOfWork,
    ) -> tuple[int, int]:
        """Resolve, compute, post.  Returns (tax, net); (0, amount) on failure."""
        with LogContext.bind(
            class_code=class_code,
            user_id=None if user_id is None else str(user_id),
            operation=operation,
        ):
            try:
                rate = pick_rate(self._resolver.get_rates(class_code))
                tax, net = compute_tax(amount, rate)

                if tax <= 0:
                    return 0, amount

                if not self._poster.post(
                    class_code, category, tax, description, unit_of_work
                ):
                    logger.warning(
                        "tax_not_applied",
                        extra={
                            "category": category.value,
                            "amount": amount,
                            "tax_amount": tax,
                        },
                    )
                    return 0, amount

                logger.info(
                    "tax_applied",
                    extra={
                        "category": category.value,
                        "amount": amount,
                        "rate": rate,
                        "tax_amount": tax,
                    },
                )
                return tax, net
            except Exception:
                logger.error(
                    "tax_application_failed",
                    extra={"category": category.value, "amount": amount},
                    exc_info=True,
                )
                return 0, amount
