"""Bootstrap do container de DI (kink): stores, gateway, loja, perfis, LLM e orquestrador."""
from kink import di
from .settings import Settings
from .logging import get_logger
from .db import create_session_factory
from .llm_client import LLMClient
from .prompting import PromptBuilder
from ..adk.orchestrator import CheckoutOrchestrator
from ..adk.runtime.toolkit import ToolRegistry
from ..adk.tools.catalog import build_catalog, capabilities_for
from ..connectors.omise.client import OmiseClient
from ..connectors.platforms.manager import PlatformManager
from ..connectors.platforms.shopify import ShopifyPlatform
from ..connectors.platforms.woocommerce import WooCommercePlatform
from ..domain.services.session_registry import SessionRegistry
from ..repo.profile_store import SqlProfileStore
from ..repo.session_store import InMemorySessionStore, SqlSessionStore


def build_platforms(settings: Settings) -> PlatformManager | None:
    """Loja configurada em `CB_PLATFORM`; None quando não há loja."""
    if not settings.platform:
        return None
    manager = PlatformManager()
    if settings.platform == "shopify":
        manager.register(ShopifyPlatform(
            settings.shopify_shop_domain,
            settings.shopify_access_token,
            api_version=settings.shopify_api_version,
            currency=settings.default_currency,
            timeout_s=settings.platform_timeout_s,
        ))
    else:
        manager.register(WooCommercePlatform(
            settings.woocommerce_store_url,
            settings.woocommerce_consumer_key,
            settings.woocommerce_consumer_secret,
            currency=settings.default_currency,
            timeout_s=settings.platform_timeout_s,
        ))
    return manager


def bootstrap_di(settings: Settings | None = None) -> CheckoutOrchestrator:
    settings = settings or Settings()
    di[Settings] = settings
    di["logger"] = get_logger()
    # sqlite (dev/testes) cria o schema direto; em produção use alembic
    session_factory = create_session_factory(settings.database_url,
                                             create_schema=settings.database_url.startswith("sqlite"))
    di["session_factory"] = session_factory

    store = SqlSessionStore(session_factory) if settings.session_backend == "sql" else InMemorySessionStore()
    di[SessionRegistry] = SessionRegistry(store)
    di["gateway"] = OmiseClient(settings)
    di["llm"] = LLMClient(settings)
    di[PromptBuilder] = PromptBuilder()

    platform = build_platforms(settings)
    profiles = SqlProfileStore(session_factory) if settings.profiles_enabled else None
    di[ToolRegistry] = build_catalog(capabilities_for(platform=platform is not None, profiles=profiles is not None))

    orchestrator = CheckoutOrchestrator(platform=platform, profiles=profiles)
    di[CheckoutOrchestrator] = orchestrator
    di["logger"].info("bootstrap_done", session_backend=settings.session_backend,
                      platform=settings.platform or None, profiles=settings.profiles_enabled,
                      tools=di[ToolRegistry].names())
    return orchestrator
