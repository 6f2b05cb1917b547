"""Lookup of existing work packages by subject."""

import logging

from .errors import DuplicateLookupError, RemoteOperationError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


def normalize_subject(subject):
    return (subject or "").strip().lower()


class DuplicateResolver:
    """Finds a work package whose subject matches exactly, ignoring case and padding."""

    def __init__(self, client, page_size=PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    def find_by_subject(self, project_id, subject):
        """Return the first work package in the project with the same subject, or None.

        Pages are fetched one at a time (1-based offsets) until a match is
        found or a page comes back shorter than the page size.
        """
        normalized_subject = normalize_subject(subject)
        logger.debug("Checking project %s for work package %r", project_id, subject)

        offset = 1
        while True:
            try:
                work_items = self.client.list_work_items(project_id, offset, self.page_size)
            except RemoteOperationError as e:
                raise DuplicateLookupError(
                    f"Could not check existing work packages in project {project_id}: {e}"
                ) from e

            work_items = work_items or []
            logger.debug(
                "Found %d work packages in project %s (page %d)", len(work_items), project_id, offset
            )

            match = self._find_match(work_items, normalized_subject)
            if match is not None:
                return match

            if len(work_items) < self.page_size:
                return None
            offset += 1

    def _find_match(self, work_items, normalized_subject):
        for work_item in work_items:
            wp_subject = normalize_subject(work_item.get("subject"))

            if wp_subject == normalized_subject:
                logger.info(
                    "Found exact match: %r (ID: %s)", work_item.get("subject"), work_item.get("id")
                )
                return work_item

            if wp_subject and normalized_subject and (
                normalized_subject in wp_subject or wp_subject in normalized_subject
            ):
                logger.warning(
                    "Found partial match: %r (ID: %s)", work_item.get("subject"), work_item.get("id")
                )

        return None
