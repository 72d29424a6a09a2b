from typing import Optional
from bson import ObjectId
from flota.modules.auth.utils.security import get_password_hash
from flota.modules.auth.models.user import UserModel


class UserService:
    def __init__(self, db):
        self.db = db
        self.collection = db["users"]

    def create_user(self, user_data: dict) -> dict:
        existing_user = self.collection.find_one({
            "$or": [
                {"email": user_data["email"]},
                {"username": user_data["username"]}
            ]
        })

        if existing_user:
            raise ValueError("Usuario o email ya existe")

        user_model = UserModel(
            email=user_data["email"],
            username=user_data["username"],
            hashed_password=get_password_hash(user_data["password"]),
            full_name=user_data["full_name"],
            rol=user_data.get("rol", "ADMIN"),
        )

        result = self.collection.insert_one(user_model.to_dict())
        return self.get_user_by_id(str(result.inserted_id))

    def get_user_by_username(self, username: str) -> Optional[dict]:
        return self.collection.find_one({"username": username})

    def get_user_by_id(self, user_id: str) -> Optional[dict]:
        if not ObjectId.is_valid(user_id):
            return None
        return self.collection.find_one({"_id": ObjectId(user_id)})

    def count(self) -> int:
        return self.collection.count_documents({})

    @staticmethod
    def to_public(user: dict) -> dict:
        """Quita el hash y expone el id como string"""
        publico = {k: v for k, v in user.items() if k not in ("_id", "hashed_password")}
        publico["id"] = str(user["_id"])
        return publico
