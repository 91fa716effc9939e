"""ORM models; importing this package registers every table on ``Base.metadata``."""

from app.models.tenant import Subscription, Tenant
from app.models.account import Account, PasswordResetToken
from app.models.invitation import Invitation
from app.models.formation import Enrollment, Formation, Lesson, LessonProgress, Quiz, QuizResult, Section
from app.models.appointment import Appointment, ConsultationFeedback
from app.models.notification import Notification

__all__ = [
    "Tenant",
    "Subscription",
    "Account",
    "PasswordResetToken",
    "Invitation",
    "Formation",
    "Section",
    "Lesson",
    "Enrollment",
    "LessonProgress",
    "Quiz",
    "QuizResult",
    "Appointment",
    "ConsultationFeedback",
    "Notification",
]
