from typing import Any, Generic, Optional, Type, TypeVar
from sqlmodel import SQLModel, Session

# Type générique pour le modèle (User, Video, RefreshToken...)
ModelT = TypeVar("ModelT", bound=SQLModel)

class BaseRepository(Generic[ModelT]):
    """
    Repository de base : persistance générique, aucune logique métier.
    Les repositories concrets définissent `model = MaClasseSQLModel`.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def get(self, id_: Any) -> Optional[ModelT]:
        """Retourne un enregistrement par son identifiant, ou None."""
        return self.session.get(self.model, id_)

    def _persist(self, entity: ModelT, *, commit: bool) -> ModelT:
        self.session.add(entity)
        if commit:
            self.session.commit()
            self.session.refresh(entity)
        else:
            # flush pour obtenir l'ID sans commit (utile pour FKs)
            self.session.flush()
        return entity

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        """
        Crée et persiste un nouvel enregistrement.
        commit=False permet d'orchestrer une transaction globale au niveau service.
        """
        return self._persist(self.model(**fields), commit=commit)

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        for key, value in changes.items():
            setattr(entity, key, value)
        return self._persist(entity, commit=commit)

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
