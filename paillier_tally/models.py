from dataclasses import dataclass

@dataclass(frozen=True)
class PublicKey:
    """Clé publique Paillier : le seul élément transmis aux votants"""
    n: int

    @property
    def n_square(self) -> int:
        return self.n * self.n

    @property
    def generator(self) -> int:
        return self.n + 1

@dataclass(frozen=True)
class KeyPair:
    """Paire de clés de l'autorité : N = p*q public, φ(N) = (p-1)(q-1) privé"""
    n: int
    phi_n: int

    @property
    def public(self) -> PublicKey:
        return PublicKey(self.n)
