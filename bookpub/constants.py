"""Folder and file names shared by ingestion and publishing."""

# Children of a title container
STYLES_FOLDER_NAME = "Styles"
ARTWORK_FOLDER_NAME = "Artwork"
SUPPLEMENTARY_FOLDER_NAME = "Supplementary"
EPUB_PACKAGE_FILE_FILENAME = "package.opf"

# Layout inside the EPUB artifact
EPUB_MIMETYPE_FILENAME = "mimetype"
EPUB_META_INF_FOLDER_NAME = "META-INF"
EPUB_CONTAINER_FILENAME = "container.xml"
EPUB_OPEN_PUBLICATION_STRUCTURE_FOLDER_NAME = "OPS"
EPUB_STYLESHEET_FOLDER_NAME = "css"
EPUB_IMAGES_FOLDER_NAME = "images"

STYLESHEET_EXTENSIONS = {".css"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".svg"}
