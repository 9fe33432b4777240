"""Premiers fixes de 14 bits pour des démonstrations reproductibles"""

P = 10007
Q = 10009
N = P * Q
PHI = (P - 1) * (Q - 1)
