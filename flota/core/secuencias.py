from pymongo import ReturnDocument
from pymongo.collection import Collection


def siguiente_id(
    *,
    counters_collection: Collection,
    target_collection: Collection,
    sequence_name: str,
) -> int:
    """
    Genera ids enteros consecutivos por colección:
    viajes -> 1, 2, 3...
    """

    counter = counters_collection.find_one_and_update(
        {"_id": sequence_name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER
    )

    nuevo_id = int(counter["seq"])

    if target_collection.find_one({"_id": nuevo_id}, {"_id": 1}):
        raise ValueError(f"Id duplicado detectado en {sequence_name}: {nuevo_id}")

    return nuevo_id
