from datetime import datetime, timedelta, timezone

from jose import jwt

from reservas.config import get_settings
from reservas.core.security import create_access_token
from reservas.core.timeutils import now_local
from reservas.models.blocked_date import BlockedDate
from reservas.models.business import Business


class TestTimestamps:
    def test_created_at_is_naive_local_time(self, session, owner):
        business = Business(name="Barbearia", slug="barbearia", email="b@b.com", owner_id=owner.id)

        assert business.created_at.tzinfo is None
        assert abs(business.created_at - now_local()) < timedelta(minutes=1)

        session.add(business)
        session.commit()
        session.refresh(business)

        assert business.created_at.tzinfo is None

    def test_defaults_survive_insert(self, session, location):
        block = BlockedDate(location_id=location.id, date=now_local().date(), reason="Feriado")
        session.add(block)
        session.commit()
        session.refresh(block)

        assert block.id is not None
        assert block.created_at.tzinfo is None


class TestAccessToken:
    def test_expiry_is_in_the_future(self):
        settings = get_settings()
        token = create_access_token({"sub": "cliente@gmail.com"})

        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        expires = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        assert payload["sub"] == "cliente@gmail.com"
        assert timedelta(0) < expires - datetime.now(timezone.utc) <= timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
