"""Provider lookup by name, built lazily from settings."""

from config.settings import settings
from src.mp_common.enums import PaymentProviderName
from src.mp_common.errors import UnsupportedProviderError
from src.mp_payment.domain.provider import PaymentProvider
from src.mp_payment.infrastructure.chapa import ChapaProvider
from src.mp_payment.infrastructure.paypal import PayPalProvider


def build_providers() -> dict[str, PaymentProvider]:
    return {
        PaymentProviderName.CHAPA.value: ChapaProvider(
            secret_key=settings.CHAPA_SECRET_KEY,
            base_url=settings.CHAPA_BASE_URL,
            currency=settings.CHAPA_CURRENCY,
            callback_url=settings.CHAPA_CALLBACK_URL,
            return_url=f"{settings.FRONTEND_URL}/payment/success",
            timeout=settings.PAYMENT_HTTP_TIMEOUT_SECONDS,
        ),
        PaymentProviderName.PAYPAL.value: PayPalProvider(
            client_id=settings.PAYPAL_CLIENT_ID,
            client_secret=settings.PAYPAL_CLIENT_SECRET,
            mode=settings.PAYPAL_MODE,
            currency=settings.PAYPAL_CURRENCY,
            return_url=f"{settings.FRONTEND_URL}/payment/paypal/success",
            cancel_url=f"{settings.FRONTEND_URL}/payment/cancel",
            timeout=settings.PAYMENT_HTTP_TIMEOUT_SECONDS,
        ),
    }


class ProviderRegistry:
    def __init__(self, providers: dict[str, PaymentProvider] | None = None) -> None:
        self._providers = providers

    def get(self, name: str) -> PaymentProvider:
        if self._providers is None:
            self._providers = build_providers()
        provider = self._providers.get(name.lower())
        if provider is None:
            raise UnsupportedProviderError(name)
        return provider
