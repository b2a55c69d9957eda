from recibofast.models.document import ContractModel, DocumentModel, TombstoneModel  # noqa: F401
