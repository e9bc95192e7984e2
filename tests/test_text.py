from app.utils.text import slugify, unique_slug


def test_slugify_spanish_title():
    assert slugify("¿Qué hacer si te detiene un oficial de tránsito?") == \
        "que-hacer-si-te-detiene-un-oficial-de-transito"


def test_slugify_empty_title():
    assert slugify("¡¿?!") == "articulo"


def test_slugify_truncates_without_trailing_dash():
    slug = slugify("a " * 100, max_length=10)
    assert len(slug) <= 10
    assert not slug.endswith("-")


def test_unique_slug_appends_suffix():
    existing = ["importancia-semaforos", "importancia-semaforos-2"]

    assert unique_slug("Importancia semáforos", existing) == "importancia-semaforos-3"
    assert unique_slug("Nuevo artículo", existing) == "nuevo-articulo"
