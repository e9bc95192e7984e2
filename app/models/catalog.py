"""
Static catalog data: article categories, common traffic infractions and the
sample articles used to seed an empty project.
"""

from pydantic import BaseModel


class Category(BaseModel):
    id: str
    name: str


class TrafficInfraction(BaseModel):
    id: str
    name: str


CATEGORIES: list[Category] = [
    Category(id="reglamentos-infracciones", name="Reglamentos e Infracciones"),
    Category(id="seguridad-vial", name="Seguridad Vial"),
    Category(id="obligaciones", name="Obligaciones"),
    Category(id="infracciones-graves", name="Infracciones Graves"),
    Category(id="consejos-generales", name="Consejos Generales"),
]

TRAFFIC_INFRACTIONS: list[TrafficInfraction] = [
    TrafficInfraction(id="speeding", name="Exceso de velocidad"),
    TrafficInfraction(id="red-light", name="No respetar semáforo en rojo"),
    TrafficInfraction(id="illegal-parking", name="Estacionamiento en lugar prohibido"),
    TrafficInfraction(id="dui", name="Manejar bajo los efectos del alcohol o drogas"),
    TrafficInfraction(id="mobile-phone", name="Uso del celular al manejar"),
    TrafficInfraction(id="seatbelt", name="No usar cinturón de seguridad"),
]


def category_name(category_id_or_name: str) -> str:
    """Resolve a category id to its display name; unknown values pass through."""
    for c in CATEGORIES:
        if category_id_or_name in (c.id, c.name):
            return c.name
    return category_id_or_name


def infraction_name(infraction_id_or_name: str) -> str:
    for i in TRAFFIC_INFRACTIONS:
        if infraction_id_or_name in (i.id, i.name):
            return i.name
    return infraction_id_or_name


# Firestore-shaped documents (camelCase) keyed by document id
SAMPLE_ARTICLES: dict[str, dict] = {
    "1": {
        "slug": "entendiendo-limites-velocidad",
        "title": "Entendiendo los Límites de Velocidad y sus Consecuencias",
        "shortDescription": "Conoce los diferentes límites de velocidad y las posibles multas por excederlos.",
        "category": "Reglamentos e Infracciones",
        "imageUrl": "https://picsum.photos/seed/speeding/600/400",
        "imageHint": "carretera velocidad",
        "content": {
            "introduction": "Los límites de velocidad son cruciales para la seguridad vial y conocerlos ayuda a prevenir accidentes y multas.",
            "points": [
                "Límites de velocidad en zona urbana y en carretera.",
                "Zonas escolares y de construcción.",
                "Multas y puntos en la licencia por exceso de velocidad.",
                "Impacto de la velocidad en la gravedad de los accidentes.",
            ],
            "conclusion": "Respetar los límites de velocidad es responsabilidad de cada conductor.",
        },
        "readMoreLink": "#",
        "favoriteCount": 120,
        "status": "published",
    },
    "2": {
        "slug": "importancia-semaforos",
        "title": "La Importancia de las Señales del Semáforo",
        "shortDescription": "Por qué los semáforos son esenciales para un flujo vehicular ordenado.",
        "category": "Seguridad Vial",
        "imageUrl": "https://picsum.photos/seed/trafficlight/600/400",
        "imageHint": "semaforo calle",
        "content": {
            "introduction": "Los semáforos administran cruces y pasos peatonales.",
            "points": [
                "Significado de las luces roja, amarilla y verde.",
                "Derecho de paso en cruces con semáforo.",
                "Consecuencias de pasarse un alto.",
                "Señales peatonales.",
            ],
            "conclusion": "Respetar las señales mantiene el orden en nuestras vialidades.",
        },
        "readMoreLink": "#",
        "favoriteCount": 95,
        "status": "published",
    },
    "3": {
        "slug": "practicas-estacionamiento-seguro",
        "title": "Prácticas de Estacionamiento Seguro para Evitar Multas",
        "shortDescription": "Reglas de estacionamiento seguro y legal.",
        "category": "Obligaciones",
        "imageUrl": "https://picsum.photos/seed/parking/600/400",
        "imageHint": "auto estacionado",
        "content": {
            "introduction": "Estacionarse correctamente es tan importante como manejar de forma segura.",
            "points": [
                "Zonas prohibidas y señalización.",
                "Estacionamiento en paralelo.",
                "Pendientes e hidrantes.",
                "Cajones para personas con discapacidad.",
            ],
            "conclusion": "Pon atención a las señales y a los reglamentos locales.",
        },
        "readMoreLink": "#",
        "favoriteCount": 78,
        "status": "published",
    },
    "4": {
        "slug": "riesgos-manejar-influencia",
        "title": "Riesgos de Manejar Bajo la Influencia",
        "shortDescription": "Peligros y consecuencias legales de manejar bajo el efecto del alcohol o drogas.",
        "category": "Infracciones Graves",
        "imageUrl": "https://picsum.photos/seed/dui/600/400",
        "imageHint": "peligro volante",
        "content": {
            "introduction": "Manejar bajo la influencia es una falta grave con consecuencias que cambian vidas.",
            "points": [
                "Cómo el alcohol y las drogas afectan la conducción.",
                "Límites legales de alcohol en la sangre.",
                "Sanciones: multas, suspensión de licencia, arresto.",
                "Alternativas para volver a casa de forma segura.",
            ],
            "conclusion": "Nunca manejes bajo la influencia.",
        },
        "readMoreLink": "#",
        "favoriteCount": 150,
        "status": "published",
    },
    "5": {
        "slug": "articulo-borrador-ejemplo",
        "title": "Ejemplo de Artículo en Borrador (Solo Admin)",
        "shortDescription": "Artículo de ejemplo en borrador, visible solo para administradores.",
        "category": "Consejos Generales",
        "imageUrl": "https://picsum.photos/seed/draft/600/400",
        "imageHint": "documento borrador",
        "content": {
            "introduction": "Así se ven los borradores en la sección de administración.",
            "points": [
                "Los borradores no son visibles para usuarios regulares.",
                "Los administradores pueden editarlos y publicarlos.",
            ],
            "conclusion": "Próximamente más contenido.",
        },
        "readMoreLink": "#",
        "favoriteCount": 5,
        "status": "draft",
    },
}
