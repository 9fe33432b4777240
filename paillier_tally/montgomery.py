"""
Exponentiation modulaire rapide sous un module impair fixe (forme de Montgomery).

Le contexte est construit une seule fois pour un module donné (ici N²) puis
réutilisé pour chaque chiffrement, déchiffrement et agrégation. Les valeurs
manipulées par mont_mul et mont_pow sont des résidus de Montgomery ;
to_residue et retrieve font la conversion depuis et vers la forme canonique.

ATTENTION: le coût de mont_pow dépend de la longueur de l'exposant, aucune
garantie de temps constant n'est offerte.
"""
import logging
from dataclasses import dataclass

from Crypto.Util.number import inverse

from paillier_tally.errors import InvalidModulus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModulusContext:
    """Paramètres de Montgomery précalculés pour un module impair"""
    modulus: int
    r_bits: int     # R = 2^r_bits > modulus
    n_prime: int    # -modulus^(-1) mod R
    r_mod_n: int    # R mod n, soit 1 en forme de Montgomery
    r2_mod_n: int   # R² mod n, pour entrer dans la forme de Montgomery

    @property
    def one(self) -> int:
        return self.r_mod_n


def build_context(modulus: int) -> ModulusContext:
    """
    Construit le contexte de Montgomery d'un module

    Args:
        modulus: Le module, impair et supérieur à 1

    Returns:
        ModulusContext: Contexte immuable réutilisable

    Raises:
        InvalidModulus: Si le module est pair ou inférieur à 3
    """
    if modulus < 3 or modulus % 2 == 0:
        raise InvalidModulus(f"Le module doit être impair et >= 3 (reçu {modulus})")

    r_bits = modulus.bit_length()
    r = 1 << r_bits
    n_prime = (-inverse(modulus, r)) % r
    context = ModulusContext(
        modulus=modulus,
        r_bits=r_bits,
        n_prime=n_prime,
        r_mod_n=r % modulus,
        r2_mod_n=(r * r) % modulus,
    )
    logger.debug("Contexte de Montgomery construit pour un module de %d bits", r_bits)
    return context


def _redc(t: int, ctx: ModulusContext) -> int:
    """Réduction de Montgomery : t * R^(-1) mod n, pour 0 <= t < n*R"""
    mask = (1 << ctx.r_bits) - 1
    m = ((t & mask) * ctx.n_prime) & mask
    u = (t + m * ctx.modulus) >> ctx.r_bits
    if u >= ctx.modulus:
        u -= ctx.modulus
    return u


def to_residue(x: int, ctx: ModulusContext) -> int:
    """Passe un entier canonique en forme de Montgomery"""
    return _redc((x % ctx.modulus) * ctx.r2_mod_n, ctx)


def retrieve(x: int, ctx: ModulusContext) -> int:
    """Ramène un résidu de Montgomery en forme canonique"""
    return _redc(x, ctx)


def mont_mul(a: int, b: int, ctx: ModulusContext) -> int:
    return _redc(a * b, ctx)


def mont_pow(base: int, exponent: int, ctx: ModulusContext) -> int:
    """
    Exponentiation binaire (carré et multiplication) sur des résidus

    Args:
        base: Résidu de Montgomery
        exponent: Exposant positif ou nul
        ctx: Contexte du module

    Returns:
        int: base^exponent, en forme de Montgomery
    """
    if exponent < 0:
        raise ValueError("Exposant négatif non supporté")

    result = ctx.one
    for bit in bin(exponent)[2:]:
        result = mont_mul(result, result, ctx)
        if bit == "1":
            result = mont_mul(result, base, ctx)
    return result


def powmod(base: int, exponent: int, ctx: ModulusContext) -> int:
    """base^exponent mod n, entrée et sortie canoniques"""
    return retrieve(mont_pow(to_residue(base, ctx), exponent, ctx), ctx)
