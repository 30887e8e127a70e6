from app.models.user import User  # noqa: F401
from app.models.tour import Tour  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.dependant import Dependant  # noqa: F401
from app.models.dependant_profile import UserDependantProfile  # noqa: F401
from app.models.review import Review  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
