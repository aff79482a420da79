class Translator:
    def __init__(self) -> None:
        self.language = "en"
        self.translations = {
            "en": {},
            "it": {
                "Normal": "Normale",
                "Ramping": "Ramping",
                "Ad-Hoc": "Ad-Hoc",
                "Percentage": "Progressione a %",
                "Rest-Pause": "Rest-Pause",
                "Myo-Reps": "Myo-Reps",
                "Drop-Set": "Drop-Set",
                "Cluster Sets": "Cluster Sets",
                "Descending Reps": "Reps Scalare",
                "Ascending Reps": "Reps Crescente",
                "1.5 Reps": "1.5 Reps",
                "Completed": "Completato",
                "Almost completed": "Quasi completato",
                "Partial": "Parziale",
                "Incomplete": "Incompleto",
                "Week": "Settimana",
                "Muscle": "Muscolo",
                "Sets": "Serie",
                "Tonnage": "Tonnellaggio",
            },
        }

    def set_language(self, lang: str) -> None:
        if lang not in self.translations:
            raise ValueError(f"unsupported language: {lang}")
        self.language = lang

    def gettext(self, key: str) -> str:
        return self.translations.get(self.language, {}).get(key, key)

translator = Translator()
