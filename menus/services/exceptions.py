"""
Exceptions métier du service de menus, traduites en réponses HTTP par les vues
"""


class NotFoundError(Exception):
    """Ressource absente ou non accessible pour l'utilisateur courant"""
    message = "Ressource introuvable"

    def __init__(self, message=None):
        super().__init__(message or self.message)


class MenuNotFoundError(NotFoundError):
    message = "Menu introuvable"


class RecipeNotFoundError(NotFoundError):
    message = "Recette introuvable"


class FavoriteNotFoundError(NotFoundError):
    message = "Favori introuvable"


class MenuStateError(Exception):
    """Opération incompatible avec l'état du menu (en cours de génération, déjà validé)"""


class GenerationError(Exception):
    """Échec d'un appel de génération IA (réseau, réponse invalide, configuration)"""


class InvalidParametersError(ValueError):
    """Paramètres de génération non exploitables"""
