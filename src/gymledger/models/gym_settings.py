"""
Gym settings model: profile and membership price table.
"""

from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from decimal import Decimal

from gymledger.models.member import RenewDuration


def default_prices() -> dict[RenewDuration, Decimal]:
    return {
        RenewDuration.MONTHLY: Decimal("30"),
        RenewDuration.TWO_MONTHS: Decimal("55"),
        RenewDuration.THREE_MONTHS: Decimal("80"),
        RenewDuration.SIX_MONTHS: Decimal("150"),
        RenewDuration.YEARLY: Decimal("300"),
    }


@dataclass(frozen=True)
class GymSettings:
    """Singleton settings record."""
    gym_name: str = "Warriors Gym"
    address: str = "AL MAHA ST, BOSHER AL KHUWAIR, MUSCAT"
    phone: str = "+968 92223330"
    email: str = "info@warriorsgym.com"
    membership_prices: dict[RenewDuration, Decimal] = field(default_factory=default_prices)

    def price_for(self, renew_duration: RenewDuration | str) -> Decimal:
        """Price of one term; tiers missing from the table fall back to the monthly price."""
        duration = RenewDuration(renew_duration)
        if duration in self.membership_prices:
            return self.membership_prices[duration]
        return self.membership_prices.get(RenewDuration.MONTHLY, default_prices()[RenewDuration.MONTHLY])

    def with_price(self, renew_duration: RenewDuration | str, price: Decimal) -> "GymSettings":
        prices = dict(self.membership_prices)
        prices[RenewDuration(renew_duration)] = Decimal(price)
        return replace(self, membership_prices=prices)


DEFAULT_SETTINGS = GymSettings()
