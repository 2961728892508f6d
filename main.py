import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.application.use_cases.notifications import DeliveryRegistry
from app.config import get_settings
from app.infrastructure.notifications import NotificationConnectionManager, WebSocketPresenter
from app.infrastructure.repositories import NotificationRepository
from app.infrastructure.store import StoreAdapter, build_store


def create_app(store: StoreAdapter | None = None) -> FastAPI:
    """Crea y configura la aplicación principal de FastAPI."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Prepara el almacén y los listeners al arrancar y los libera al cerrar."""

        settings = get_settings()
        logging.basicConfig(level=settings.log_level)
        active_store = store if store is not None else build_store(settings)
        repository = NotificationRepository(active_store)
        manager = NotificationConnectionManager()
        registry = DeliveryRegistry(
            repository,
            lambda user_id: WebSocketPresenter(manager, user_id),
            capacity=settings.delivery_dedupe_capacity,
            retain=settings.delivery_retained_listeners,
        )
        app.state.store = active_store
        app.state.notification_repository = repository
        app.state.connection_manager = manager
        app.state.delivery_registry = registry
        try:
            yield
        finally:
            await registry.stop_all()
            await active_store.close()

    app = FastAPI(lifespan=lifespan)

    # Autoriza peticiones desde la aplicación cliente.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:4200"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from app.interfaces.api.routes import register_routes

    register_routes(app)
    return app


app = create_app()
