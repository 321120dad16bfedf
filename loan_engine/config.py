"""Runtime settings for the loan engine.

Values are read from the environment once, when the module is imported, so
deployments can tune limits without code changes.
"""

import os


class Settings:
    # Longest tenure accepted at the validation boundary (50 years)
    MAX_TENURE_MONTHS: int = int(os.getenv("LOAN_ENGINE_MAX_TENURE_MONTHS", "600"))

    # Alerts
    DUE_SOON_DAYS: int = int(os.getenv("LOAN_ENGINE_DUE_SOON_DAYS", "7"))
    HIGH_EMI_RATIO_PERCENT: int = int(os.getenv("LOAN_ENGINE_HIGH_EMI_RATIO", "20"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOAN_ENGINE_LOG_LEVEL", "WARNING")


settings = Settings()
