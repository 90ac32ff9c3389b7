"""Prometheus metrics for the application"""
from prometheus_client import Counter, Gauge, REGISTRY


def _counter(name: str, documentation: str, labelnames=()):
    """Create a counter, reusing the registered one on module reload"""
    try:
        return Counter(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors.get(name)


# Webhook metrics
webhook_events_counter = _counter(
    'findtutor_webhook_events_total',
    'Total number of Stripe webhook events received',
    ['event_type', 'outcome']
)

# Checkout metrics
checkout_sessions_counter = _counter(
    'findtutor_checkout_sessions_total',
    'Total number of checkout session creation attempts',
    ['purchase_type', 'status']
)

# Reconciliation metrics
premium_upserts_counter = _counter(
    'findtutor_premium_upserts_total',
    'Total number of premium record upserts applied from webhooks',
    ['kind']
)

contact_purchases_counter = _counter(
    'findtutor_contact_purchases_total',
    'Total number of contact purchase webhooks by result',
    ['result']
)


def _gauge(name: str, documentation: str, labelnames=()):
    try:
        return Gauge(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors.get(name)


paid_premium_records_gauge = _gauge(
    'findtutor_paid_premium_records',
    'Number of paid premium records',
    ['kind']
)


def update_premium_gauges(db):
    """Refresh paid premium record counts from the database"""
    from app.models.premium_student import PremiumStudent
    from app.models.premium_teacher import PremiumTeacher

    teachers = db.query(PremiumTeacher).filter(PremiumTeacher.ispaid.is_(True)).count()
    students = db.query(PremiumStudent).filter(PremiumStudent.ispayed.is_(True)).count()
    paid_premium_records_gauge.labels(kind="teacher").set(teachers)
    paid_premium_records_gauge.labels(kind="student").set(students)
