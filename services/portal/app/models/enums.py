import enum


class Role(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_ADMIN = "TENANT_ADMIN"
    EMPLOYEE = "EMPLOYEE"
    CONSULTANT = "CONSULTANT"
    CONTENT_AUTHOR = "CONTENT_AUTHOR"

    @property
    def is_tenant_bound(self) -> bool:
        return self in (Role.TENANT_ADMIN, Role.EMPLOYEE)


# papéis que um admin de empresa pode convidar
INVITABLE_ROLES = frozenset({Role.EMPLOYEE, Role.TENANT_ADMIN})


class PlanTier(str, enum.Enum):
    ESSENTIEL = "ESSENTIEL"
    PRO = "PRO"
    ENTREPRISE = "ENTREPRISE"


class SubscriptionStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class LessonType(str, enum.Enum):
    VIDEO = "VIDEO"
    TEXT = "TEXT"
    QUIZ = "QUIZ"
    DOCUMENT = "DOCUMENT"


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    # correct_answer guarda palavras-chave separadas por vírgula
    OPEN_ENDED = "open_ended"


class InvitationState(str, enum.Enum):
    ISSUED = "ISSUED"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"


class ResetTokenState(str, enum.Enum):
    ISSUED = "ISSUED"
    USED = "USED"
    EXPIRED = "EXPIRED"
