"""Domain modules package."""

from app.modules.booking import models as booking_models  # noqa: F401
from app.modules.health_forms import models as health_forms_models  # noqa: F401
from app.modules.programs import models as programs_models  # noqa: F401
from app.modules.students import models as students_models  # noqa: F401
from app.modules.teachers import models as teachers_models  # noqa: F401
from app.modules.venues import models as venues_models  # noqa: F401
