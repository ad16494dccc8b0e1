from app.models.queue_entry import ProcessingQueueModel  # noqa: F401
