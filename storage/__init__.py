"""Knowledge persistence and document import/export."""
