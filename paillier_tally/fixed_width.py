from paillier_tally.errors import ArithmeticOverflow


class FixedWidth:
    """
    Entier non signé de largeur fixe avec détection de dépassement.

    Les entiers Python ne débordent jamais ; cette classe vérifie
    explicitement que chaque addition, multiplication ou mise au carré
    dont le résultat doit tenir dans `bits` bits y tient réellement.
    """

    def __init__(self, bits: int):
        if bits < 1:
            raise ValueError("La largeur doit être positive")
        self.bits = bits
        self.limit = 1 << bits

    def check(self, value: int, what: str = "valeur") -> int:
        """
        Vérifie qu'une valeur tient dans la largeur déclarée

        Raises:
            ArithmeticOverflow: Si la valeur est négative ou dépasse 2^bits - 1
        """
        if value < 0 or value >= self.limit:
            raise ArithmeticOverflow(
                f"{what} ({value.bit_length()} bits) ne tient pas sur {self.bits} bits"
            )
        return value

    def checked_add(self, a: int, b: int, what: str = "somme") -> int:
        return self.check(a + b, what)

    def checked_mul(self, a: int, b: int, what: str = "produit") -> int:
        return self.check(a * b, what)

    def checked_square(self, a: int, what: str = "carré") -> int:
        return self.check(a * a, what)

    def __repr__(self) -> str:
        return f"FixedWidth({self.bits})"
