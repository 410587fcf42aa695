"""
Error code catalog for the API error body.

Codes are part of the public contract. The first code listed for an HTTP
status is the one used when a bare ``HTTPException`` reaches the handlers.
"""

ERROR_CODES = {
    # generic
    "business_rule_violation": {"http": 400, "message": "The request violates a business rule."},
    "unauthorized": {"http": 401, "message": "Unauthorized. Please provide valid credentials."},
    "forbidden": {"http": 403, "message": "You are not allowed to perform this action."},
    "not_found": {"http": 404, "message": "Resource not found."},
    "conflict": {"http": 409, "message": "Resource conflict."},
    "validation_error": {"http": 422, "message": "Validation failed for one or more fields."},
    "internal_error": {"http": 500, "message": "An unexpected error occurred."},
    "crypto_error": {"http": 500, "message": "Encryption subsystem error."},
    "upstream_error": {"http": 502, "message": "Upstream service error."},

    # authentication / authorization
    "invalid_token": {"http": 401, "message": "Invalid or expired token."},
    "invalid_secret": {"http": 401, "message": "Invalid secret"},
    "system_admin_required": {
        "http": 403,
        "message": "This action is unauthorized. System Admin privileges required.",
    },
    "tenant_access_denied": {"http": 403, "message": "You do not have access to this tenant"},
    "invalid_impersonation_token": {"http": 403, "message": "Invalid or expired impersonation token"},

    # tenancy
    "tenant_not_found": {"http": 404, "message": "Tenant not found"},
    "organization_not_found": {"http": 404, "message": "Organization not found for this tenant."},
    "organization_exists": {"http": 409, "message": "Organization already exists for this tenant."},
    "role_not_found": {"http": 404, "message": "Role not found"},
    "role_exists": {"http": 400, "message": "Role with this name already exists for this tenant"},
    "role_in_use": {"http": 400, "message": "Cannot delete role. It is assigned to user(s)"},
    "invalid_permissions": {"http": 400, "message": "Some permissions are invalid or not tenant-scoped"},

    # billing
    "plan_not_found": {"http": 404, "message": "Subscription plan not found"},
    "subscription_not_found": {"http": 404, "message": "No active subscription found for this tenant"},
    "invoice_not_found": {"http": 404, "message": "Invoice not found"},
    "payment_method_not_found": {"http": 404, "message": "Payment method not found"},

    # marketplace
    "agent_not_found": {"http": 404, "message": "Agent not found"},
    "agent_inactive": {"http": 400, "message": "Agent is not active"},
    "agent_not_installed": {"http": 404, "message": "Agent is not installed for this tenant"},
    "agent_already_installed": {"http": 409, "message": "Agent is already installed for this tenant"},
    "agent_endpoint_missing": {"http": 400, "message": "No active trigger endpoint configured for this agent"},
    "agent_callback_endpoint_missing": {
        "http": 400,
        "message": "No active callback endpoint configured for this agent",
    },
    "agent_run_not_found": {"http": 404, "message": "Agent run not found"},
    "agent_trigger_failed": {"http": 502, "message": "Agent failed to accept execution request"},

    # console
    "tenant_unavailable": {"http": 404, "message": "Tenant not found or inactive"},
    "impersonation_not_found": {"http": 404, "message": "Impersonation session not found"},
    "impersonation_inactive": {"http": 400, "message": "Impersonation is not active"},
    "impersonation_not_owner": {"http": 403, "message": "Unauthorized: You did not start this impersonation"},
    "impersonation_access_denied": {"http": 403, "message": "Unauthorized"},
}
