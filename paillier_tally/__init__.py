"""Dépouillement homomorphe de votes chiffrés avec Paillier"""

__version__ = "0.1.0"
