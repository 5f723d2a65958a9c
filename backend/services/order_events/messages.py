NOTES = {
    "tag_assigned": "Successfully assigned tag '{tag}' to new affiliate ID {customer_id}.",
    "tag_failed": "Failed to assign tag '{tag}' to affiliate ID {customer_id}.",
    "no_referrer": "No referring affiliate found for this order. No parent affiliate set.",
    "self_referrer": (
        "Referring affiliate is the customer (Affiliate ID {customer_id}). No parent affiliate set."
    ),
    "parent_overwrite": (
        "Parent affiliate already exists for Customer ID {customer_id} (Affiliate ID: {previous}). "
        "Overwriting with new parent Affiliate ID {parent_id}."
    ),
    "parent_set": "Multi-Tier parent affiliate set for Customer ID {customer_id} to Affiliate ID {parents}.",
    "parent_failed": "Failed to set parent affiliate for Customer ID {customer_id} to Affiliate ID {parent_id}.",
    "parent_mismatch": (
        "Parent affiliate check failed for Customer ID {customer_id}: "
        "expected Affiliate ID {parent_id}, found {parents}."
    ),
    "commission_added": "Self-referral commission added for Affiliate ID {customer_id}. Amount: {amount}.",
    "commission_failed": "Failed to add self-referral commission for Affiliate ID {customer_id}.",
}

LOG_MESSAGES = {
    "order_not_found": "Order ID {order_id} not found.",
    "no_customer": "No customer found for Order ID {order_id}.",
    "status_ignored": "Order ID {order_id} moved to '{status}'; nothing to do.",
    "not_affiliate": "Customer ID {customer_id} is not an affiliate.",
    "already_processed": "Self-referral commission for Order ID {order_id} already exists. Skipping.",
    "no_rate": "No valid self-referral rate found for Customer ID {customer_id}. Skipping.",
    "commission_added": "Self-referral commission added for Affiliate ID {customer_id}. Amount: {amount}.",
    "commission_failed": "Failed to add self-referral commission for Affiliate ID {customer_id}.",
    "tags_done": "Assigned {assigned} of {total} product tags to affiliate ID {customer_id}.",
    "no_referrer": "No referring affiliate found for Order ID {order_id}.",
    "self_referrer": "Order ID {order_id} was referred by its own customer {customer_id}.",
    "parent_set": "Parent affiliate for Customer ID {customer_id} set to {parent_id}.",
    "parent_failed": "Failed to set parent affiliate {parent_id} for Customer ID {customer_id}.",
    "step_error": "Step {step} failed for Order ID {order_id}: {error}",
}


def note_text(key: str, **values) -> str:
    return NOTES[key].format(**values)


def log_text(key: str, **values) -> str:
    return LOG_MESSAGES[key].format(**values)


def format_ids(ids) -> str:
    if not ids:
        return "none"
    return ", ".join(str(value) for value in ids)
