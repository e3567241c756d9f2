"""Configurações Pydantic Settings para a aplicação."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """Configurações da aplicação. Carrega de env e .env.

    Todas as credenciais devem vir via env. Nunca hardcode.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CB_", case_sensitive=False)

    # DB / sessões
    database_url: str = Field(default="sqlite://", description="URL do banco, ex: postgresql+psycopg://user:pass@db:5432/app")
    session_backend: str = Field(default="memory", pattern=r"^(memory|sql)$")
    default_currency: str = Field(default="THB")

    # LLM / LiteLLM
    litellm_base_url: str = Field(default="http://localhost:4000", description="URL do gateway LiteLLM")
    litellm_model: str = Field(default="gpt-4o-mini")
    litellm_timeout_s: int = Field(default=30)
    litellm_max_tokens: int = Field(default=1024)
    litellm_temperature: float = Field(default=0.2)

    # Histórico enviado ao modelo (0 = tudo). O histórico salvo nunca é truncado.
    history_window: int = Field(default=0, ge=0)

    # Omise
    omise_public_key: str = Field(default="")
    omise_secret_key: str = Field(default="")
    omise_api_url: str = Field(default="https://api.omise.co")
    omise_vault_url: str = Field(default="https://vault.omise.co")
    omise_timeout_s: int = Field(default=15)
    return_uri_base: str = Field(default="http://localhost:3000", description="Base da URL de retorno após redirect/QR")

    # Plataforma de e-commerce (opcional)
    platform: str = Field(default="", pattern=r"^(|shopify|woocommerce)$")
    shopify_shop_domain: str = Field(default="")
    shopify_access_token: str = Field(default="")
    shopify_api_version: str = Field(default="2024-01")
    woocommerce_store_url: str = Field(default="")
    woocommerce_consumer_key: str = Field(default="")
    woocommerce_consumer_secret: str = Field(default="")
    platform_timeout_s: int = Field(default=10)

    # Perfis (endereços e meios de pagamento salvos)
    profiles_enabled: bool = Field(default=False)

    # Política: check_payment_status promove status da sessão?
    promote_on_status_check: bool = Field(default=False)
