import inspect
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from openai import AsyncOpenAI

from routes.chat_route import router as chat_router
from routes.product_route import router as product_router
from routes.session_route import router as session_router
from services.openai.embedding_service import EmbeddingService
from services.openai.responder import Responder
from services.retrieval.product_retriever import ProductRetriever
from services.retrieval.vector_index import InMemoryVectorIndex, PineconeVectorIndex, VectorIndex
from services.whatsapp.conversation_store import ConversationStore
from services.whatsapp.credential_store import CredentialStore
from services.whatsapp.message_pipeline import MessagePipeline
from services.whatsapp.session_manager import SessionManager
from services.whatsapp.transport import TransportFactory
from utils.qr_render import QRRenderer
from utils.settings import Settings, load_settings

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Long-lived collaborators shared by routes through `app.state`."""

    session_manager: SessionManager
    retriever: ProductRetriever
    pipeline: MessagePipeline
    openai_client: Optional[AsyncOpenAI] = None


ServicesFactory = Callable[[], Awaitable[AppServices]]


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger().setLevel(level)


def build_vector_index(settings: Settings) -> VectorIndex:
    if settings.vector_backend == "memory":
        LOGGER.warning("Using the in-memory vector index; products are lost on restart")
        return InMemoryVectorIndex()
    return PineconeVectorIndex(
        api_key=settings.pinecone_api_key,
        index_name=settings.pinecone_index,
        namespace=settings.pinecone_namespace,
        timeout_s=settings.remote_timeout_s,
    )


def build_services(
    settings: Settings,
    openai_client: Optional[AsyncOpenAI] = None,
    transport_factory: Optional[TransportFactory] = None,
    vector_index: Optional[VectorIndex] = None,
) -> AppServices:
    """Wire the session manager, retrieval, responder and pipeline from settings."""
    if openai_client is None:
        try:
            # Remote calls are bounded by REMOTE_TIMEOUT_S and never retried.
            openai_client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    if transport_factory is None:
        from services.whatsapp.neonize_transport import neonize_transport_factory

        transport_factory = neonize_transport_factory

    embeddings = EmbeddingService(openai_client, model=settings.embedding_model, timeout_s=settings.remote_timeout_s)
    retriever = ProductRetriever(
        vector_index or build_vector_index(settings),
        embeddings,
        threshold=settings.match_threshold,
        top_k=settings.retrieval_top_k,
    )
    responder = Responder(openai_client, model=settings.chat_model, timeout_s=settings.remote_timeout_s)
    session_manager = SessionManager(
        transport_factory,
        CredentialStore(settings.auth_dir),
        reconnect_delay_s=settings.reconnect_delay_s,
    )
    pipeline = MessagePipeline(
        session_manager,
        retriever,
        responder,
        ConversationStore(capacity=settings.context_capacity),
    )
    pipeline.attach()
    return AppServices(
        session_manager=session_manager,
        retriever=retriever,
        pipeline=pipeline,
        openai_client=openai_client,
    )


async def _default_services() -> AppServices:
    settings = load_settings()
    configure_logging(settings.log_level)
    return build_services(settings)


async def _close_client(client) -> None:
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        result = aclose()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        LOGGER.warning(f"Error while closing OpenAI client: {exc}")


def create_app(services_factory: Optional[ServicesFactory] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    `services_factory` replaces the environment-driven wiring (used by tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Build shared services, attach them to `app.state` and start the
        WhatsApp session. Configuration errors propagate so the process
        refuses to start.
        """
        services = await (services_factory or _default_services)()

        app.state.session_manager = services.session_manager
        app.state.retriever = services.retriever
        app.state.pipeline = services.pipeline
        app.state.openai_client = services.openai_client
        app.state.qr_renderer = QRRenderer()

        await services.session_manager.start()
        try:
            yield
        finally:
            await services.session_manager.stop()
            await services.pipeline.drain()
            if services.openai_client is not None:
                await _close_client(services.openai_client)

    app = FastAPI(title="WhatsApp Product Assistant", lifespan=lifespan)

    @app.get("/", include_in_schema=False)
    async def root():
        return PlainTextResponse("WhatsApp product assistant is running.")

    @app.get("/health")
    async def health(request: Request):
        """
        Report whether shared services are attached and the session state.
        """
        manager = getattr(request.app.state, "session_manager", None)
        return {
            "ok": manager is not None,
            "session_state": manager.state.value if manager is not None else None,
        }

    app.include_router(session_router)
    app.include_router(product_router)
    app.include_router(chat_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    configure_logging(_settings.log_level)
    uvicorn.run("main:app", host="0.0.0.0", port=_settings.port)
