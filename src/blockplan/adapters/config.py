# src/blockplan/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.growth import GrowthCurve
from blockplan.domain.property import PropertyExpenses


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # Growth curve, annual percent per holding tier
    GROWTH_YEAR1: float = Field(default=12.5)
    GROWTH_YEARS2TO3: float = Field(default=10.0)
    GROWTH_YEAR4: float = Field(default=7.5)
    GROWTH_YEAR5PLUS: float = Field(default=6.0)

    # Lending
    INTEREST_RATE: float = Field(default=0.065)
    LOAN_TERM_YEARS: int = Field(default=30)

    # Operating expenses for purchases without their own figures
    MANAGEMENT_FEE_RATE: float = Field(default=0.08)
    COUNCIL_RATES: float = Field(default=2000.0)
    INSURANCE: float = Field(default=1500.0)
    MAINTENANCE_RATE: float = Field(default=0.01)
    VACANCY_RATE: float = Field(default=0.02)
    STRATA_FEES: float = Field(default=0.0)

    # Cascade & serviceability
    EQUITY_RELEASE_FACTOR: float = Field(default=0.0)
    SERVICEABILITY_BUFFER: float = Field(default=0.0)
    BASE_SERVICEABILITY_INCOME: float = Field(default=0.0)

    # Suggested fixes
    MIN_LVR: float = Field(default=50.0)
    MAX_LVR: float = Field(default=95.0)
    MIN_SUGGESTED_PRICE: float = Field(default=100_000.0)

    model_config = SettingsConfigDict(
        env_prefix="BLOCKPLAN_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "INTEREST_RATE",
        "MANAGEMENT_FEE_RATE",
        "MAINTENANCE_RATE",
        "VACANCY_RATE",
        "EQUITY_RELEASE_FACTOR",
        "SERVICEABILITY_BUFFER",
        mode="before",
    )
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    @field_validator("MIN_LVR", "MAX_LVR", mode="before")
    @classmethod
    def _lvr_percent(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        f = float(v)
        if not 0.0 <= f <= 100.0:
            raise ValueError("LVR bounds must be between 0 and 100")
        return f

    def to_assumptions(self) -> EconomicAssumptions:
        """Freeze the current settings into the snapshot the engine consumes."""
        return EconomicAssumptions(
            growth_curve=GrowthCurve(
                year1=self.GROWTH_YEAR1,
                years2to3=self.GROWTH_YEARS2TO3,
                year4=self.GROWTH_YEAR4,
                year5plus=self.GROWTH_YEAR5PLUS,
            ),
            interest_rate=self.INTEREST_RATE,
            loan_term_years=self.LOAN_TERM_YEARS,
            expenses=PropertyExpenses(
                management_fee_rate=self.MANAGEMENT_FEE_RATE,
                council_rates=self.COUNCIL_RATES,
                insurance=self.INSURANCE,
                maintenance_rate=self.MAINTENANCE_RATE,
                vacancy_rate=self.VACANCY_RATE,
                strata_fees=self.STRATA_FEES,
            ),
            equity_release_factor=self.EQUITY_RELEASE_FACTOR,
            serviceability_buffer=self.SERVICEABILITY_BUFFER,
            base_serviceability_income=self.BASE_SERVICEABILITY_INCOME,
            min_lvr=self.MIN_LVR,
            max_lvr=self.MAX_LVR,
            min_suggested_price=self.MIN_SUGGESTED_PRICE,
        )


config = AppConfig()
