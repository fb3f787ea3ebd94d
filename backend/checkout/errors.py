"""
Erreurs du checkout.
Les codes promo et cartes cadeaux invalides ne sont PAS des erreurs:
ils se résolvent silencieusement en « pas de remise » / « pas de crédit ».
"""

class CheckoutError(Exception):
    status_code = 400
    code = "checkout_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

class ValidationError(CheckoutError):
    status_code = 400
    code = "validation_error"

class PaymentsNotEnabled(CheckoutError):
    status_code = 400
    code = "payments_not_enabled"

class ImpersonationForbidden(CheckoutError):
    status_code = 403
    code = "impersonation_forbidden"

class TenantNotFound(CheckoutError):
    status_code = 404
    code = "tenant_not_found"

class ProductNotFound(CheckoutError):
    status_code = 404
    code = "product_not_found"

class ProcessorError(CheckoutError):
    status_code = 502
    code = "processor_error"
