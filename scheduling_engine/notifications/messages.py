"""Customer-facing reminder message templates."""

from scheduling_engine.schemas.notification_schema import ReminderType

REMINDER_TEMPLATES: dict[ReminderType, str] = {
    ReminderType.REMINDER_24H: (
        "Hi {customer_name}! This is a reminder that your {service_type} service for your "
        "{vehicle_info} is scheduled for tomorrow at {scheduled_time} at {location}. "
        "Please reply CONFIRM to confirm your appointment."
    ),
    ReminderType.REMINDER_2H: (
        "Hi {customer_name}! Your {service_type} service for your {vehicle_info} is starting "
        "in 2 hours at {scheduled_time}. Location: {location}. We'll see you soon!"
    ),
    ReminderType.REMINDER_30M: (
        "Hi {customer_name}! Your {service_type} service is starting in 30 minutes. "
        "Our team is ready for your {vehicle_info} at {location}."
    ),
    ReminderType.GENERIC: (
        "Hi {customer_name}! This is a reminder about your upcoming {service_type} service "
        "for your {vehicle_info} scheduled for {scheduled_time} at {location}."
    ),
}


def build_reminder_message(
    reminder_type: ReminderType,
    customer_name: str,
    service_type: str,
    vehicle_info: str,
    scheduled_time: str,
    location: str,
) -> str:
    """Fill the template for ``reminder_type``."""
    template = REMINDER_TEMPLATES.get(reminder_type, REMINDER_TEMPLATES[ReminderType.GENERIC])
    return template.format(
        customer_name=customer_name,
        service_type=service_type.replace("_", " "),
        vehicle_info=vehicle_info,
        scheduled_time=scheduled_time,
        location=location,
    )
