class InvalidInputError(ValueError):
    """Circuit definition rejected before any computation."""

class DuplicateNameError(ValueError):
    """A record with the same (case-insensitive) name is already stored."""

    def __init__(self, name: str):
        super().__init__(f'Ya existe un cuadro con el nombre "{name}". Use un nombre diferente.')
        self.name = name
