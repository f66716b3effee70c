"""Domain modules package."""

from app.modules.audit import models as audit_models  # noqa: F401
from app.modules.billing import models as billing_models  # noqa: F401
from app.modules.booking import models as booking_models  # noqa: F401
from app.modules.checkout import models as checkout_models  # noqa: F401
from app.modules.classes import models as classes_models  # noqa: F401
from app.modules.coaches import models as coaches_models  # noqa: F401
from app.modules.family import models as family_models  # noqa: F401
from app.modules.identity import models as identity_models  # noqa: F401
from app.modules.scheduling import models as scheduling_models  # noqa: F401
