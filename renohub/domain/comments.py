"""
Comment thread reconstruction
"""
from dataclasses import replace
from typing import Dict, List

from .models import Comment


def build_comment_tree(comments: List[Comment]) -> List[Comment]:
    """
    Group a flat, creation-ordered comment list into threads.

    Each comment is appended to its parent's ``replies`` (or to the returned
    top-level list when it has no parent). Comments whose parent is not in
    the list are dropped, together with their own replies.

    The input comments are not modified.
    """
    nodes: Dict[str, Comment] = {
        comment.id: replace(comment, replies=[]) for comment in comments
    }
    top_level: List[Comment] = []

    for comment in comments:
        node = nodes[comment.id]
        if comment.parent_id:
            parent = nodes.get(comment.parent_id)
            if parent is not None:
                parent.replies.append(node)
        else:
            top_level.append(node)

    return top_level
