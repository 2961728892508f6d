"""Utility script to create an initial administrator in the user directory."""

from __future__ import annotations

import argparse
import asyncio

from app.config import get_settings
from app.domain.entities import User
from app.domain.exceptions import StoreWriteError
from app.infrastructure.repositories import UserRepository
from app.infrastructure.store import build_store


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create an initial administrator for the notification service.",
    )
    parser.add_argument(
        "--uid",
        required=True,
        help="Identificador del usuario, debe coincidir con el 'sub' de sus tokens",
    )
    parser.add_argument(
        "--name",
        default="Administrador",
        help="Nombre completo del usuario (por defecto: Administrador)",
    )
    parser.add_argument(
        "--email",
        default="admin@example.com",
        help="Correo electrónico del usuario (por defecto: admin@example.com)",
    )
    return parser.parse_args()


async def _create_admin(args: argparse.Namespace) -> User:
    settings = get_settings().model_copy(update={"store_backend": "sql"})
    store = build_store(settings)
    try:
        users = UserRepository(store)
        return await users.save(
            User(uid=args.uid, email=args.email, name=args.name, admin=True)
        )
    finally:
        await store.close()


def main() -> None:
    """Create an administrator using the provided command line arguments."""

    args = parse_args()
    try:
        user = asyncio.run(_create_admin(args))
    except StoreWriteError as exc:
        raise SystemExit(f"Error al guardar el usuario en la base de datos: {exc}") from exc
    print(
        "Usuario creado exitosamente:\n"
        f"  UID: {user.uid}\n"
        f"  Nombre: {user.name}\n"
        f"  Email: {user.email}"
    )


if __name__ == "__main__":
    main()
