"""Keyword based activity inference for entries that leave 'activity' blank."""

DEFAULT_ACTIVITY = "Development"

# Ordered; the first keyword found in the subject wins.
ACTIVITY_KEYWORDS = (
    ("scrum", "Meeting"),
    ("meeting", "Meeting"),
    ("session", "Meeting"),
    ("clarification", "Meeting"),
    ("setup", "Development"),
    ("enhanced", "Development"),
    ("fixed", "Development"),
    ("fix", "Development"),
    ("route", "Development"),
    ("linkup", "Development"),
    ("template", "Development"),
    ("codes", "Development"),
    ("staging", "Support"),
    ("server", "Support"),
    ("feedback", "Specification"),
    ("recruitment", "Specification"),
    ("profile", "Development"),
    ("view", "Development"),
)


def determine_activity(task_description, keywords=ACTIVITY_KEYWORDS, default=DEFAULT_ACTIVITY):
    """Determine the activity type based on task description."""
    task_lower = (task_description or "").lower()

    for keyword, activity in keywords:
        if keyword in task_lower:
            return activity

    return default
