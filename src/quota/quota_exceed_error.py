"""Any exception that can occur when user does not have enough quota available."""


class QuotaExceedError(Exception):
    """Daily request quota of the model has been exceeded."""

    def __init__(self, user_id: str, model_id: str, limit: int) -> None:
        """Construct exception object."""
        message = (
            f"User {user_id} has used all {limit} daily requests of model {model_id}"
        )

        # call the base class constructor with the parameters it needs
        super().__init__(message)

        self.user_id = user_id
        self.model_id = model_id
        self.limit = limit
