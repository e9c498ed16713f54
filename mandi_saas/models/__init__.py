from mandi_saas.models.tenant import Tenant, TenantStatus
from mandi_saas.models.user import User, UserRole, UserStatus
from mandi_saas.models.subscription import (
    Subscription, SubscriptionPlan, SubscriptionPlanType, SubscriptionStatus
)
from mandi_saas.models.subscription_payment import SubscriptionPayment, SubscriptionPaymentStatus
from mandi_saas.models.notification import Notification, NotificationChannel, NotificationStatus
