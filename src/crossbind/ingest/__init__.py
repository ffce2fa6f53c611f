from crossbind.ingest.declaration_json import (
    DeclarationDocument,
    DeclarationFormatError,
    load_declaration_file,
    load_declaration_text,
    parse_declaration,
    parse_declaration_document,
)

__all__ = [
    "DeclarationDocument",
    "DeclarationFormatError",
    "load_declaration_file",
    "load_declaration_text",
    "parse_declaration",
    "parse_declaration_document",
]
