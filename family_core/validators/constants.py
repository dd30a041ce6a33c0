"""
validators/constants.py: Patterns, allowed values and user-facing messages for record validation.
"""
import re

EMAIL_REGEX = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_REGEX = re.compile(r"\+?[1-9]\d{1,14}", re.ASCII)
NAME_REGEX = re.compile(r"[a-zA-Z\s\-']{1,50}")

ALLOWED_ROLES = ("parent", "aupair")
ALLOWED_PRIORITIES = ("low", "medium", "high")

MESSAGES = {
    "name_required": "Name is required",
    "name_invalid": "Name contains invalid characters",
    "email_invalid": "Valid email is required",
    "phone_invalid": "Invalid phone number format",
    "role_invalid": "Invalid role specified",
    "family_required": "Family ID is required",
    "child_name_required": "Child name is required",
    "child_name_invalid": "Child name contains invalid characters",
    "birth_date_invalid": "Invalid birth date",
    "medical_conditions_invalid": "Medical conditions must be a string",
    "emergency_contacts_invalid": "Emergency contacts must be an array",
    "task_title_required": "Task title is required",
    "task_assignee_required": "Task must be assigned to someone",
    "due_date_invalid": "Invalid due date",
    "priority_invalid": "Invalid priority level",
    "description_invalid": "Description must be a string",
    "event_title_required": "Event title is required",
    "event_times_required": "Start and end times are required",
    "event_date_format": "Invalid date format",
    "event_end_before_start": "End time must be after start time",
    "attendees_invalid": "Attendees must be an array",
    "location_invalid": "Location must be a string",
    "item_name_required": "Item name is required",
    "quantity_invalid": "Quantity must be a positive number",
    "category_invalid": "Category must be a string",
}
