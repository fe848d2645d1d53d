from storefront.adapters.mock_mail import MockMailAdapter
from storefront.adapters.mock_payment import MockPaymentAdapter
from storefront.adapters.smtp_mail import SmtpMailAdapter
from storefront.adapters.stripe_payment import StripePaymentAdapter
from storefront.config import Settings


def build_payment_adapter(settings: Settings):
    if settings.PAYMENT_BACKEND == "stripe":
        if not settings.STRIPE_SECRET_KEY:
            raise ValueError("STRIPE_SECRET_KEY is required when PAYMENT_BACKEND=stripe")
        return StripePaymentAdapter(settings.STRIPE_SECRET_KEY)
    return MockPaymentAdapter(
        delay_ms=settings.PAYMENT_MOCK_DELAY_MS,
        failure_rate=settings.PAYMENT_MOCK_FAILURE_RATE,
    )


def build_mail_adapter(settings: Settings):
    if settings.MAIL_BACKEND == "smtp":
        return SmtpMailAdapter(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.MAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
        )
    return MockMailAdapter(sender=settings.MAIL_FROM)
