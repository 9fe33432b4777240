from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# Valeurs par défaut du scénario de démonstration
WORKING_BITS = 128      # Largeur des entiers de travail, doit contenir N²
NUM_VOTERS = 16         # log2(NUM_VOTERS) fixe la largeur du compteur de chaque candidat
NUM_CANDIDATES = 3      # Avec log2(NUM_VOTERS), fixe la taille du message de vote
CHOSEN_CANDIDATE = 0    # Position du candidat choisi côté votant
PRIME_BITS = 14         # Taille des premiers p et q (N sur 28 bits)
ACCUMULATOR_BITS = 64   # Largeur de l'accumulateur utilisé pour décoder le résultat


class TallyConfig(BaseModel):
    """Paramètres d'une élection, injectés à la construction des composants"""
    model_config = ConfigDict(frozen=True)

    working_bits: int = WORKING_BITS
    num_voters: int = NUM_VOTERS
    num_candidates: int = NUM_CANDIDATES
    chosen_candidate: int = CHOSEN_CANDIDATE
    prime_bits: int = PRIME_BITS
    accumulator_bits: int = ACCUMULATOR_BITS
    public_modulus: Optional[int] = None
    randomness: Literal["uniform", "safe_prime"] = "uniform"

    @field_validator("num_voters")
    @classmethod
    def check_voters(cls, value: int) -> int:
        if value < 2:
            raise ValueError("Il faut au moins 2 votants")
        return value

    @field_validator("num_candidates")
    @classmethod
    def check_candidates(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Il faut au moins un candidat")
        return value

    @field_validator("prime_bits")
    @classmethod
    def check_prime_bits(cls, value: int) -> int:
        # En dessous de 3 bits, p ou q peut valoir 2 et N devient pair
        if value < 3:
            raise ValueError("Les premiers doivent faire au moins 3 bits")
        return value

    @field_validator("accumulator_bits")
    @classmethod
    def check_accumulator(cls, value: int) -> int:
        if value < 1:
            raise ValueError("L'accumulateur doit faire au moins 1 bit")
        return value

    @field_validator("public_modulus")
    @classmethod
    def check_modulus(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and (value < 3 or value % 2 == 0):
            raise ValueError("Le module public N doit être impair et supérieur à 1")
        return value

    @model_validator(mode="after")
    def check_consistency(self) -> "TallyConfig":
        if not 0 <= self.chosen_candidate < self.num_candidates:
            raise ValueError(
                f"Candidat choisi {self.chosen_candidate} hors de [0, {self.num_candidates})"
            )
        # N fait au plus 2*prime_bits bits, N² au plus le double
        if self.working_bits < 4 * self.prime_bits:
            raise ValueError(
                f"working_bits={self.working_bits} ne peut pas contenir N² "
                f"pour des premiers de {self.prime_bits} bits"
            )
        return self
