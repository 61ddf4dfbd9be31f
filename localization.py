class Translator:
    def __init__(self) -> None:
        self.language = "en"
        self.translations = {
            "en": {},
            "fr": {
                "Unauthorized access. Please sign in again.": "Accès non autorisé. Veuillez vous reconnecter.",
                "Session expired. Please sign in again.": "Session expirée. Veuillez vous reconnecter.",
                "This entry already exists.": "Cette donnée existe déjà.",
                "Invalid reference. Please check your data.": "Référence invalide. Veuillez vérifier vos données.",
                "An unexpected error occurred": "Une erreur inattendue est survenue",
                "Error": "Erreur",
                "saving the calendar": "sauvegarde du calendrier",
                "loading the calendar": "chargement du calendrier",
                "Calendar": "Calendrier",
                "Plans": "Plans",
            },
        }

    def set_language(self, lang: str) -> None:
        if lang not in self.translations:
            raise ValueError(f"unsupported language: {lang}")
        self.language = lang

    def gettext(self, key: str) -> str:
        return self.translations.get(self.language, {}).get(key, key)

translator = Translator()
