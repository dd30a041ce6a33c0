USERS_COLLECTION = "users"
FAMILIES_COLLECTION = "families"
CHILDREN_COLLECTION = "children"

# Sub-collections under families/{familyId}
TASKS_COLLECTION = "tasks"
CALENDAR_COLLECTION = "calendar"
SHOPPING_LISTS_COLLECTION = "shoppingLists"
NOTES_COLLECTION = "notes"

CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"
