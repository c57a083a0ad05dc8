# Package v2alpha1 contains the second revision of the batch API group.
# +groupName=batch.example.com
# +versionName=v2
