# app/core/errors.py


class ReminderServiceError(RuntimeError):
    pass


class EmptyInputError(ReminderServiceError, ValueError):
    """No text (or image) was supplied to the intake pipeline."""


class DocumentNotFoundError(ReminderServiceError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class StorageError(ReminderServiceError):
    pass
