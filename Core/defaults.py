# Core/defaults.py
# Check-list standard affectée à un DAO créé sans tâches.
DEFAULT_TASKS = [
    "Résumé sommaire du DAO et création du drive",
    "Demande de caution et garanties",
    "Identification et renseignement des profils dans le drive",
    "Identification et renseignement des ABE dans le drive",
    "Rédaction du contenu de la méthodologie",
    "Planning prévisionnel",
    "Rédaction des références",
    "Chiffrage",
    "Rédaction de l'offre financière",
    "Vérification et validation de l'offre",
    "Impression et reliure",
    "Dépôt de l'offre",
]
