from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    COMPANY_NAME: str = "PC Builder Store"

    # Pricing defaults, used when a catalog entry carries no tax rate
    DEFAULT_TAX_RATE: float = 18.0
    DEFAULT_SERVICE_UNIT: str = "Per Visit"
    DEFAULT_REORDER_LEVEL: int = 5

    # Estimates
    DEFAULT_VALIDITY_DAYS: int = 15
    AUDIT_ACTOR: str = "Admin User"
    ESTIMATE_ID_PREFIX: str = "EST"
    ORDER_ID_PREFIX: str = "ORD"
    MODEL_ID_PREFIX: str = "MODEL"

    # Converted estimates stay linked to their order; delete is refused
    # unless this is switched on
    ALLOW_DELETE_CONVERTED: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "PCQUOTE_"


settings = Settings()
