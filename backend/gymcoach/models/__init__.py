# Import all models so Base.metadata is populated for create_all.
from gymcoach.models.user import User  # noqa: F401
from gymcoach.models.session import Session  # noqa: F401
from gymcoach.models.coach_profile import CoachProfile  # noqa: F401
from gymcoach.models.coach_assignment import CoachClientAssignment  # noqa: F401
from gymcoach.models.exercise import Exercise  # noqa: F401
from gymcoach.models.routine import Routine, RoutineExercise  # noqa: F401
from gymcoach.models.routine_assignment import RoutineAssignment, TrainingDay  # noqa: F401
from gymcoach.models.notification import Notification  # noqa: F401
