"""JSON rendering for MongoDB documents and write results."""

from datetime import datetime

from bson import ObjectId


def convert_objectid(obj):
    """Recursively convert ObjectId to string in dicts/lists"""
    if isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: convert_objectid(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_objectid(item) for item in obj]
    elif isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def insert_result(result):
    return {
        'acknowledged': result.acknowledged,
        'insertedId': str(result.inserted_id),
    }


def update_result(result):
    return {
        'acknowledged': result.acknowledged,
        'matchedCount': result.matched_count,
        'modifiedCount': result.modified_count,
        'upsertedId': str(result.upserted_id) if result.upserted_id is not None else None,
    }


def delete_result(result):
    return {
        'acknowledged': result.acknowledged,
        'deletedCount': result.deleted_count,
    }
