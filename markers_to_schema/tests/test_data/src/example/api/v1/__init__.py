# +groupName=batch.example.com

"""Package v1 contains API schema definitions for the batch v1 API group."""
