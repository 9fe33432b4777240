import logging
from math import isqrt
from typing import Callable, Optional, Tuple

from Crypto.Util.number import GCD, getPrime, getRandomRange, isPrime

from paillier_tally.errors import InvalidKey
from paillier_tally.fixed_width import FixedWidth
from paillier_tally.models import KeyPair, PublicKey

logger = logging.getLogger(__name__)

RandFunc = Optional[Callable[[int], bytes]]

def generate_keys(bit_length: int, width: FixedWidth, randfunc: RandFunc = None) -> KeyPair:
    """
    Génère une paire de clés Paillier à partir de deux premiers probables

    Args:
        bit_length: Taille en bits de chacun des premiers p et q
        width: Largeur de travail, N = p*q doit y tenir
        randfunc: Source d'aléa sûre (par défaut Crypto.Random)

    Returns:
        KeyPair: (N, φ(N))

    Raises:
        ValueError: Si bit_length < 3 (p ou q pourrait valoir 2)
        ArithmeticOverflow: Si N ne tient pas dans la largeur de travail
    """
    if bit_length < 3:
        raise ValueError("Les premiers doivent faire au moins 3 bits")

    p = getPrime(bit_length, randfunc=randfunc)
    q = getPrime(bit_length, randfunc=randfunc)
    # Deux tirages indépendants peuvent coïncider sur de petites tailles
    while q == p:
        q = getPrime(bit_length, randfunc=randfunc)

    n = width.checked_mul(p, q, "N = p*q")
    logger.debug("Clés générées : N sur %d bits", n.bit_length())
    return KeyPair(n=n, phi_n=(p - 1) * (q - 1))

def keys_from_primes(p: int, q: int, width: FixedWidth) -> KeyPair:
    """
    Reconstruit la paire de clés depuis les facteurs fournis par l'autorité

    Raises:
        InvalidKey: Si p ou q n'est pas premier, ou si p == q
        ArithmeticOverflow: Si N ne tient pas dans la largeur de travail
    """
    if p == q:
        raise InvalidKey("p et q doivent être distincts")
    for factor in (p, q):
        if factor < 3 or not isPrime(factor):
            raise InvalidKey(f"{factor} n'est pas un premier impair")

    n = width.checked_mul(p, q, "N = p*q")
    return KeyPair(n=n, phi_n=(p - 1) * (q - 1))

def recover_primes(n: int, phi_n: int) -> Tuple[int, int]:
    """
    Retrouve p et q à partir de N et φ(N)

    p + q = N - φ(N) + 1 et p*q = N : p et q sont les racines de
    x² - (p+q)x + N.

    Raises:
        InvalidKey: Si φ(N) n'est pas cohérent avec N
    """
    s = n - phi_n + 1
    disc = s * s - 4 * n
    if disc <= 0:
        raise InvalidKey("φ(N) ne correspond pas à N")
    root = isqrt(disc)
    if root * root != disc or (s + root) % 2:
        raise InvalidKey("φ(N) ne correspond pas à N")

    p, q = (s + root) // 2, (s - root) // 2
    if q < 2 or p * q != n:
        raise InvalidKey("φ(N) ne correspond pas à N")
    return p, q

def keys_from_totient(n: int, phi_n: int) -> KeyPair:
    """Associe φ(N) fourni par l'autorité au module public N connu"""
    if not 0 < phi_n < n:
        raise InvalidKey(f"φ(N) doit être dans ]0, N[ (reçu {phi_n})")
    recover_primes(n, phi_n)
    return KeyPair(n=n, phi_n=phi_n)

def generate_safe_prime(bits: int, randfunc: RandFunc = None) -> int:
    """
    Génère un premier sûr p = 2q + 1 (q premier) d'exactement `bits` bits
    """
    if bits < 3:
        raise ValueError("Un premier sûr fait au moins 3 bits")
    while True:
        q = getPrime(bits - 1, randfunc=randfunc)
        p = 2 * q + 1
        if p.bit_length() == bits and isPrime(p, randfunc=randfunc):
            return p

def draw_randomness(public_key: PublicKey, mode: str = "uniform",
                    bits: Optional[int] = None, randfunc: RandFunc = None) -> int:
    """
    Tire un nouvel aléa de masquage r, premier avec N

    Args:
        public_key: Clé publique du scrutin
        mode: "uniform" (r uniforme dans [1, N)) ou "safe_prime" (r premier sûr)
        bits: Taille du premier sûr en mode "safe_prime"
        randfunc: Source d'aléa sûre

    Returns:
        int: r, à ne jamais réutiliser pour un autre vote
    """
    n = public_key.n
    if mode == "uniform":
        while True:
            r = getRandomRange(1, n, randfunc=randfunc)
            if GCD(r, n) == 1:
                return r
    if mode == "safe_prime":
        if bits is None:
            bits = max(3, (n.bit_length() + 1) // 2)
        if bits >= n.bit_length():
            raise ValueError(f"Un premier sûr de {bits} bits ne tient pas sous N")
        while True:
            r = generate_safe_prime(bits, randfunc=randfunc)
            if r < n and GCD(r, n) == 1:
                return r
    raise ValueError(f"Mode d'aléa inconnu : {mode}")
