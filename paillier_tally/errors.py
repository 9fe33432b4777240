class TallyError(Exception):
    """Exception de base pour toutes les erreurs du dépouillement"""
    pass

class ArithmeticOverflow(TallyError):
    """Un résultat dépasse la largeur fixe déclarée"""
    pass

class InvalidModulus(TallyError):
    """Module pair (ou trop petit) donné au moteur de Montgomery"""
    pass

class EncodingOverflow(TallyError):
    """Le vote ou le message ne tient pas dans la capacité empaquetée"""
    pass

class NoInverse(TallyError):
    """Aucun inverse modulaire n'existe"""
    pass

class MalformedInput(TallyError):
    """Entrée textuelle illisible (décimal invalide, mauvais nombre de champs)"""
    pass

class InvalidKey(TallyError):
    """Clé incohérente : facteurs non premiers, p == q, ou φ(N) qui ne correspond pas à N"""
    pass

class InvalidRandomness(TallyError):
    """Aléa de masquage hors intervalle ou non premier avec N"""
    pass

class SessionStateError(TallyError):
    """Opération interdite dans l'état courant de la session d'audit"""
    pass
