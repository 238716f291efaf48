from enum import Enum


class PricingTierEnum(str, Enum):
    FREE = "free"
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"

class EnrollmentStatusEnum(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    SUSPENDED = "suspended"

class LessonProgressStatusEnum(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class PaymentTypeEnum(str, Enum):
    ENROLLMENT = "enrollment"
    SUBSCRIPTION = "subscription"
    RENEWAL = "renewal"

class PaymentStatusEnum(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"

class CertificateStatusEnum(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"

class WebhookOutcomeEnum(str, Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    STALE = "stale"
    IGNORED = "ignored"

class VerificationFailureEnum(str, Enum):
    NOT_FOUND = "not found"
    REVOKED = "revoked"
    EXPIRED = "expired"


# Allowed (source -> targets) transitions per entity. Anything absent is rejected.
ENROLLMENT_TRANSITIONS = {
    EnrollmentStatusEnum.PENDING: {
        EnrollmentStatusEnum.ACTIVE,
        EnrollmentStatusEnum.CANCELLED,
        EnrollmentStatusEnum.COMPLETED,
    },
    EnrollmentStatusEnum.ACTIVE: {
        EnrollmentStatusEnum.COMPLETED,
        EnrollmentStatusEnum.CANCELLED,
        EnrollmentStatusEnum.SUSPENDED,
        EnrollmentStatusEnum.REFUNDED,
    },
    EnrollmentStatusEnum.SUSPENDED: {
        EnrollmentStatusEnum.ACTIVE,
        EnrollmentStatusEnum.CANCELLED,
        EnrollmentStatusEnum.COMPLETED,
    },
    EnrollmentStatusEnum.COMPLETED: set(),
    EnrollmentStatusEnum.CANCELLED: set(),
    EnrollmentStatusEnum.REFUNDED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatusEnum.PENDING: {
        PaymentStatusEnum.PROCESSING,
        PaymentStatusEnum.COMPLETED,
        PaymentStatusEnum.FAILED,
    },
    PaymentStatusEnum.PROCESSING: {
        PaymentStatusEnum.COMPLETED,
        PaymentStatusEnum.FAILED,
    },
    PaymentStatusEnum.COMPLETED: {
        PaymentStatusEnum.REFUNDED,
        PaymentStatusEnum.PARTIALLY_REFUNDED,
    },
    PaymentStatusEnum.PARTIALLY_REFUNDED: {
        PaymentStatusEnum.REFUNDED,
        PaymentStatusEnum.PARTIALLY_REFUNDED,
    },
    PaymentStatusEnum.REFUNDED: set(),
    PaymentStatusEnum.FAILED: set(),
}

CERTIFICATE_TRANSITIONS = {
    CertificateStatusEnum.ACTIVE: {
        CertificateStatusEnum.REVOKED,
        CertificateStatusEnum.EXPIRED,
    },
    CertificateStatusEnum.REVOKED: {
        CertificateStatusEnum.ACTIVE,
    },
    CertificateStatusEnum.EXPIRED: {
        CertificateStatusEnum.REVOKED,
    },
}

REFUNDABLE_PAYMENT_STATUSES = {
    PaymentStatusEnum.COMPLETED,
    PaymentStatusEnum.PARTIALLY_REFUNDED,
}
