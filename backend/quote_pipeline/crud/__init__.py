from . import crud_quote, crud_settings
