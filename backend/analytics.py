"""
Aggregate statistics over payments and the menu.

Every function here is read-only and returns zeros (or an empty list) on an
empty database.
"""

from bson import ObjectId


def store_wide_stats(store):
    """Collection sizes plus the revenue summed over every payment"""
    users = store.users.estimated_document_count()
    menu_items = store.menu.estimated_document_count()
    orders = store.payments.estimated_document_count()

    result = list(store.payments.aggregate([
        {'$group': {'_id': None, 'totalRevenue': {'$sum': '$price'}}},
    ]))
    revenue = result[0]['totalRevenue'] if result else 0

    return {
        'users': users,
        'menuItems': menu_items,
        'orders': orders,
        'revenue': revenue,
    }


def _as_object_id(value):
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def order_stats_by_category(store):
    """
    Quantity and catalog revenue per menu category.

    Each occurrence of an id in a payment's ``menuItemIds`` is one purchase.
    Purchases are counted per id in the database, joined to the menu, then
    folded into categories. Ids with no matching menu item are dropped.
    """
    purchases = list(store.payments.aggregate([
        {'$unwind': '$menuItemIds'},
        {'$group': {'_id': '$menuItemIds', 'count': {'$sum': 1}}},
    ]))

    counts = {}
    for row in purchases:
        oid = _as_object_id(row['_id'])
        if oid is not None:
            counts[oid] = counts.get(oid, 0) + row['count']
    if not counts:
        return []

    stats = {}
    menu_items = store.menu.find(
        {'_id': {'$in': list(counts)}},
        {'category': 1, 'price': 1},
    )
    for item in menu_items:
        count = counts[item['_id']]
        entry = stats.setdefault(item.get('category'), {'quantity': 0, 'totalRevenue': 0})
        entry['quantity'] += count
        entry['totalRevenue'] += (item.get('price') or 0) * count

    return [
        {'category': category, 'quantity': entry['quantity'], 'totalRevenue': entry['totalRevenue']}
        for category, entry in sorted(stats.items(), key=lambda kv: str(kv[0]))
    ]


def user_stats(store, email):
    """Order count, money spent and items bought by one user"""
    query = {'email': email}
    orders = store.payments.count_documents(query)

    result = list(store.payments.aggregate([
        {'$match': query},
        {'$project': {
            'price': 1,
            'menuCount': {'$size': {'$ifNull': ['$menuItemIds', []]}},
        }},
        {'$group': {
            '_id': None,
            'totalPayments': {'$sum': '$price'},
            'totalMenuItems': {'$sum': '$menuCount'},
        }},
    ]))
    total_payments = result[0]['totalPayments'] if result else 0
    total_menu_items = result[0]['totalMenuItems'] if result else 0

    return {
        'orders': orders,
        'totalPayments': total_payments,
        'totalMenuItems': total_menu_items,
    }
