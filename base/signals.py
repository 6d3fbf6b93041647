from django.dispatch import Signal

# Sent inside the delete transaction, before any row is touched.
# Receivers get ``team`` and ``actor``; raising aborts the deletion.
team_deleting = Signal()
