# scripts/create_dealer_admin.py
import getpass

from sqlalchemy.orm import Session

from app.core.errors import DealershipError
from app.db.session import SessionLocal
from app.services.dealer_service import onboard_dealer


def prompt_non_empty(label: str, default: str | None = None) -> str:
    while True:
        value = input(f"{label}{f' [{default}]' if default else ''}: ").strip()
        if not value and default is not None:
            return default
        if value:
            return value
        print("  -> Este campo no puede estar vacío.")


def prompt_optional(label: str) -> str | None:
    value = input(f"{label} (opcional): ").strip()
    return value or None


def main() -> None:
    print("=== Alta de dealer con administrador ===")

    db: Session = SessionLocal()
    try:
        business_name = prompt_non_empty("Nombre comercial")
        email = prompt_optional("Email")
        phone = prompt_optional("Teléfono")
        address = prompt_optional("Dirección")

        username = prompt_non_empty("Usuario administrador", default="admin")
        full_name = prompt_non_empty("Nombre completo", default="Administrador")

        while True:
            password = getpass.getpass("Contraseña: ")
            password_confirm = getpass.getpass("Confirmar contraseña: ")

            if not password:
                print("  -> La contraseña no puede estar vacía.")
                continue
            if password != password_confirm:
                print("  -> Las contraseñas no coinciden, intenta de nuevo.\n")
                continue
            break

        try:
            dealer, profile = onboard_dealer(
                db,
                business_name=business_name,
                admin_username=username,
                admin_password=password,
                admin_full_name=full_name,
                email=email,
                phone=phone,
                address=address,
            )
        except DealershipError as exc:
            print(f"\n[ERROR] {exc.message}\n")
            return

        print("\n[OK] Dealer creado:")
        print(f"  dealer_id={dealer.id}")
        print(f"  nombre={dealer.business_name}")
        print(f"  admin={profile.username} (id={profile.id})\n")

    finally:
        db.close()


if __name__ == "__main__":
    main()
