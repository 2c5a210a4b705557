"""
Pre-built virtual endpoint templates offered as starting points.
"""

from ..schemas.template import Template, TemplateSummary


VIRTUAL_ENDPOINT_TEMPLATES: dict[str, dict[str, str]] = {
    "blank": {
        "name": "Blank Template",
        "description": "Start from scratch with a blank function",
        "code": '''async def virtual_endpoint(context):
    params = context.input.params
    utils = context.utils

    # Your code here

    return {"message": "Hello from virtual endpoint!"}
''',
    },

    "transform_single": {
        "name": "Transform Single Endpoint",
        "description": "Modify response from a single endpoint",
        "code": '''async def virtual_endpoint(context):
    # Call source endpoint
    data = await context.get("endpoint-id", {
        "params": context.input.params,
        "query": context.input.query,
    })

    # Transform response - pick only specific fields
    return context.utils.pick(data, ["id", "name", "email"])
''',
    },

    "combine_two": {
        "name": "Combine Two Endpoints",
        "description": "Merge data from two related endpoints",
        "code": '''async def virtual_endpoint(context):
    params = context.input.params

    # Call multiple endpoints in parallel
    primary, secondary = await context.parallel(
        {"endpoint_id": "endpoint-1", "options": {"params": params}},
        {"endpoint_id": "endpoint-2", "options": {"query": {"id": params.get("id")}}},
    )

    # Combine results
    return {**primary, "related_data": secondary}
''',
    },

    "sequential_calls": {
        "name": "Sequential Calls",
        "description": "Use result from first call in second call",
        "code": '''async def virtual_endpoint(context):
    # First call
    user = await context.get("get-user", {
        "params": {"id": context.input.params.get("id")},
    })

    # Use result from first call in second call
    posts = await context.get("get-posts", {
        "query": {"userId": user["id"], "limit": 10},
    })

    return {"user": user, "posts": posts}
''',
    },

    "filter_transform": {
        "name": "Filter & Transform",
        "description": "Filter and reshape array response",
        "code": '''async def virtual_endpoint(context):
    utils = context.utils
    data = await context.get("endpoint-id")

    # Filter active items only
    active = [item for item in data if item.get("status") == "active"]

    # Transform and sort
    return [
        utils.pick(item, ["id", "title", "created_at"])
        for item in utils.sort_by(active, "created_at", "desc")
    ]
''',
    },

    "pagination": {
        "name": "Pagination Wrapper",
        "description": "Add pagination metadata to responses",
        "code": '''async def virtual_endpoint(context):
    query = context.input.query
    page = int(query.get("page") or 1)
    limit = int(query.get("limit") or 20)

    data = await context.get("endpoint-id", {
        "query": {"_start": (page - 1) * limit, "_limit": limit},
    })

    return {
        "data": data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": len(data),
            "has_more": len(data) == limit,
        },
    }
''',
    },

    "rename_fields": {
        "name": "Rename Fields",
        "description": "Convert field names between naming conventions",
        "code": '''async def virtual_endpoint(context):
    utils = context.utils
    data = await context.get("endpoint-id")

    # Convert snake_case to camelCase
    mapping = {
        "user_name": "userName",
        "created_at": "createdAt",
        "is_active": "isActive",
    }

    if isinstance(data, list):
        return [utils.rename_keys(item, mapping) for item in data]

    return utils.rename_keys(data, mapping)
''',
    },

    "aggregate_stats": {
        "name": "Aggregate Statistics",
        "description": "Compute statistics from array data",
        "code": '''async def virtual_endpoint(context):
    utils = context.utils
    orders = await context.get("get-orders", {
        "query": {"userId": context.input.params.get("user_id")},
    })

    return {
        "total_orders": len(orders),
        "total_revenue": utils.sum(orders, "total"),
        "avg_order_value": utils.round(utils.avg(orders, "total"), 2),
        "orders_by_status": utils.group_by(orders, "status"),
        "recent_orders": utils.sort_by(orders, "created_at", "desc")[:10],
    }
''',
    },

    "external_api": {
        "name": "Call External API",
        "description": "Combine local endpoint with external API",
        "code": '''async def virtual_endpoint(context):
    # Get data from loaded endpoint
    user = await context.get("get-user", {
        "params": {"id": context.input.params.get("id")},
    })

    # Enrich with external API data
    external_data = await context.fetch(
        f"https://api.example.com/data/{user['external_id']}"
    )

    return {**user, "enriched_data": external_data}
''',
    },

    "conditional_logic": {
        "name": "Conditional Logic",
        "description": "Different logic based on input parameters",
        "code": '''async def virtual_endpoint(context):
    user_type = context.input.query.get("type")

    if user_type == "admin":
        # Admins see all users
        return await context.get("get-all-users")

    if user_type == "premium":
        # Premium users see filtered list
        users = await context.get("get-all-users")
        return [user for user in users if user.get("plan") == "premium"]

    # Regular users see public list only
    return await context.get("get-public-users")
''',
    },

    "error_handling": {
        "name": "Error Handling",
        "description": "Handle errors gracefully with fallback data",
        "code": '''async def virtual_endpoint(context):
    try:
        data = await context.get("flaky-endpoint", {
            "params": context.input.params,
        })
        return {"success": True, "data": data}

    except Exception as error:
        # Return fallback data or error info
        return {
            "success": False,
            "error": str(error),
            "fallback": {"message": "Service temporarily unavailable"},
        }
''',
    },

    "combine_multiple": {
        "name": "Combine Multiple Endpoints",
        "description": "Fetch and combine data from 3+ endpoints",
        "code": '''async def virtual_endpoint(context):
    utils = context.utils
    user_id = context.input.params.get("id")

    # Fetch all user data in parallel
    user, posts, comments, favorites = await context.parallel(
        {"endpoint_id": "get-user", "options": {"params": {"id": user_id}}},
        {"endpoint_id": "get-posts", "options": {"query": {"userId": user_id}}},
        {"endpoint_id": "get-comments", "options": {"query": {"userId": user_id}}},
        {"endpoint_id": "get-favorites", "options": {"query": {"userId": user_id}}},
    )

    return {
        "profile": utils.pick(user, ["id", "name", "email", "avatar"]),
        "stats": {
            "posts": len(posts),
            "comments": len(comments),
            "favorites": len(favorites),
        },
        "recent_activity": utils.sort_by(posts[:3] + comments[:3], "created_at", "desc"),
    }
''',
    },

    "data_enrichment": {
        "name": "Data Enrichment",
        "description": "Add computed fields and metadata to response",
        "code": '''async def virtual_endpoint(context):
    utils = context.utils
    products = await context.get("get-products")

    def enrich(product):
        price = product.get("price") or 0
        sale_price = product.get("sale_price")
        return {
            **product,
            # Add formatted price
            "formatted_price": f"${price:.2f}",
            # Add discount percentage if on sale
            "discount_percent": (
                utils.round((price - sale_price) / price * 100, 1)
                if sale_price and price else 0
            ),
            # Add availability status
            "availability": "In Stock" if product.get("stock", 0) > 0 else "Out of Stock",
            # Add formatted dates
            "added_date": utils.format_date(product.get("created_at"), "MMM DD, YYYY"),
        }

    return [enrich(product) for product in products]
''',
    },
}


def get_template(key: str | None) -> Template:
    """Get a template by key, falling back to the blank template."""
    template = VIRTUAL_ENDPOINT_TEMPLATES.get(key or "", VIRTUAL_ENDPOINT_TEMPLATES["blank"])
    return Template(**template)


def get_template_list() -> list[TemplateSummary]:
    """List template keys, names and descriptions for the picker."""
    return [
        TemplateSummary(key=key, name=template["name"], description=template["description"])
        for key, template in VIRTUAL_ENDPOINT_TEMPLATES.items()
    ]
