"""
Assemble read documents from store rows.

Every reference is an identifier. Author population for comment threads is
the only enrichment, and it is opt-in.
"""
from contentgraph.models import Comment, Post, Reply, Story, User
from contentgraph.schemas import (
    CommentDocument,
    PostDocument,
    ReplyDocument,
    StoryDocument,
    UserDocument,
    UserSummary,
)
from contentgraph.store import StoreSession


async def user_document(tx: StoreSession, user_id: str) -> UserDocument:
    user = await tx.require(User, user_id)
    return UserDocument(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        bio=user.bio,
        profile_picture=user.profile_picture,
        cover_picture=user.cover_picture,
        followers=await tx.set_members(User, user_id, "followers"),
        following=await tx.set_members(User, user_id, "following"),
        block_list=await tx.set_members(User, user_id, "block_list"),
        posts=await tx.find_ids(Post, Post.user_id == user_id),
        created_at=user.created_at,
    )


async def user_summaries(tx: StoreSession, user_ids: list[str]) -> list[UserSummary]:
    """Summaries in the order of `user_ids`; unknown ids are skipped."""
    if not user_ids:
        return []
    users = await tx.find_where(User, User.user_id.in_(user_ids))
    by_id = {u.user_id: u for u in users}
    return [UserSummary.model_validate(by_id[uid]) for uid in user_ids if uid in by_id]


def _post_document(post: Post, likes: list[str], comments: list[str]) -> PostDocument:
    return PostDocument(
        post_id=post.post_id,
        user_id=post.user_id,
        caption=post.caption,
        media=list(post.media or []),
        likes=likes,
        comments=comments,
        created_at=post.created_at,
    )


async def post_document(tx: StoreSession, post_id: str) -> PostDocument:
    post = await tx.require(Post, post_id)
    return _post_document(
        post,
        likes=await tx.set_members(Post, post_id, "likes"),
        comments=await tx.find_ids(Comment, Comment.post_id == post_id),
    )


async def post_documents(tx: StoreSession, posts: list[Post]) -> list[PostDocument]:
    post_ids = [p.post_id for p in posts]
    likes = await tx.set_members_many(Post, post_ids, "likes")
    comments: dict[str, list[str]] = {pid: [] for pid in post_ids}
    if post_ids:
        for comment in await tx.find_where(Comment, Comment.post_id.in_(post_ids)):
            comments[comment.post_id].append(comment.comment_id)
    return [_post_document(p, likes[p.post_id], comments[p.post_id]) for p in posts]


async def comment_documents(
    tx: StoreSession,
    comments: list[Comment],
    populate: bool = False,
) -> list[CommentDocument]:
    comment_ids = [c.comment_id for c in comments]
    comment_likes = await tx.set_members_many(Comment, comment_ids, "likes")

    replies_by_comment: dict[str, list[Reply]] = {cid: [] for cid in comment_ids}
    replies: list[Reply] = []
    if comment_ids:
        replies = await tx.find_where(Reply, Reply.comment_id.in_(comment_ids))
        for reply in replies:
            replies_by_comment[reply.comment_id].append(reply)
    reply_likes = await tx.set_members_many(Reply, [r.reply_id for r in replies], "likes")

    authors: dict[str, UserSummary] = {}
    if populate:
        author_ids = list({c.user_id for c in comments} | {r.user_id for r in replies})
        authors = {s.user_id: s for s in await user_summaries(tx, author_ids)}

    docs = []
    for comment in comments:
        docs.append(
            CommentDocument(
                comment_id=comment.comment_id,
                user_id=comment.user_id,
                post_id=comment.post_id,
                text=comment.text,
                likes=comment_likes[comment.comment_id],
                replies=[
                    ReplyDocument(
                        reply_id=r.reply_id,
                        user_id=r.user_id,
                        text=r.text,
                        likes=reply_likes[r.reply_id],
                        created_at=r.created_at,
                        author=authors.get(r.user_id),
                    )
                    for r in replies_by_comment[comment.comment_id]
                ],
                created_at=comment.created_at,
                author=authors.get(comment.user_id),
            )
        )
    return docs


async def comment_document(tx: StoreSession, comment_id: str) -> CommentDocument:
    comment = await tx.require(Comment, comment_id)
    (doc,) = await comment_documents(tx, [comment])
    return doc


def story_document(story: Story) -> StoryDocument:
    return StoryDocument.model_validate(story)
