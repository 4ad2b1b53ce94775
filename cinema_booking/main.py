from cinema_booking.app_factory import create_app
from cinema_booking.config import Settings


app = create_app(Settings.from_env())
