class DuplicateEmailError(Exception):
    """An identity with this email already exists."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already in use: {email}")
        self.email = email
