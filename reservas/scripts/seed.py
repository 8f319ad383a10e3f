from sqlmodel import Session, select

from reservas.core.security import create_access_token
from reservas.database import create_db_and_tables, engine
from reservas.models.business import Business
from reservas.models.business_hours import BusinessHours
from reservas.models.location import Location
from reservas.models.service import Service
from reservas.models.user import User


OWNER_EMAIL = "negocio@gmail.com"
CLIENT_EMAIL = "cliente@gmail.com"


def _get_or_create_user(session: Session, email: str, name: str, role: str) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if not user:
        user = User(name=name, email=email, role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
    return user


def main():
    create_db_and_tables()

    with Session(engine) as session:
        # 1) usuários de teste
        owner = _get_or_create_user(session, OWNER_EMAIL, "Dona do Salão", "business")
        client = _get_or_create_user(session, CLIENT_EMAIL, "Cliente Teste", "client")

        # 2) negócio + local
        business = session.exec(select(Business).where(Business.owner_id == owner.id)).first()
        if not business:
            business = Business(name="Salão Centro", slug="salao-centro", email=OWNER_EMAIL, owner_id=owner.id)
            session.add(business)
            session.commit()
            session.refresh(business)

        location = session.exec(select(Location).where(Location.business_id == business.id)).first()
        if not location:
            location = Location(
                business_id=business.id,
                name="Centro",
                address="Av. Corrientes 1234",
                city="Buenos Aires",
                province="CABA",
            )
            session.add(location)
            session.commit()
            session.refresh(location)

        # 3) criar/atualizar horários (seg-sáb 09-18, domingo fechado)
        for weekday in range(7):
            cfg = dict(is_closed=weekday == 6, open_time="09:00", close_time="18:00")
            row = session.exec(
                select(BusinessHours).where(
                    BusinessHours.location_id == location.id,
                    BusinessHours.weekday == weekday,
                )
            ).first()

            if row:
                row.is_closed = cfg["is_closed"]
                row.open_time = cfg["open_time"]
                row.close_time = cfg["close_time"]
                session.add(row)
            else:
                session.add(BusinessHours(location_id=location.id, weekday=weekday, **cfg))

        # 4) serviços de teste (se não existir)
        existing_service = session.exec(
            select(Service).where(Service.location_id == location.id)
        ).first()

        if not existing_service:
            session.add_all(
                [
                    Service(name="Corte", duration_minutes=30, buffer_minutes=15, price=4000.0, location_id=location.id),
                    Service(
                        name="Coloração",
                        duration_minutes=90,
                        price=12000.0,
                        requires_deposit=True,
                        deposit_percentage=30,
                        location_id=location.id,
                    ),
                    Service(
                        name="Manicure",
                        duration_minutes=60,
                        price=5000.0,
                        requires_approval=False,
                        location_id=location.id,
                    ),
                ]
            )

        session.commit()

        print("✅ Seed concluído!")
        print(f"Negócio: {business.id} ({business.name}) - local {location.id}")
        print("Horários: seg-sáb 09-18; domingo fechado")
        print(f"Token negócio: {create_access_token({'sub': owner.email})}")
        print(f"Token cliente: {create_access_token({'sub': client.email})}")


if __name__ == "__main__":
    main()
