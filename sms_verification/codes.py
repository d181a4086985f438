import random

CODE_MIN = 1000
CODE_MAX = 9999


class CodeGenerator:
    """Produces 4-digit sign-in codes from an injected random source.

    The range starts at 1000, so codes never have a leading zero and are
    always exactly four characters long.
    """

    def __init__(self, rng=None):
        # random.Random() seeds itself once from the OS/time source
        self.rng = rng if rng is not None else random.Random()

    def generate(self) -> str:
        return str(self.rng.randint(CODE_MIN, CODE_MAX))
