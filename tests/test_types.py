import unittest

from helpers import make_post

from ibdl.errors import InvalidImageboardError, MissingFieldError
from ibdl.models import Extension, ImageBoards, NameType, Rating, TagType
from ibdl.services.booru.types import Post, PostQueue, Tag


class TestRating(unittest.TestCase):
    def test_parses_letters_and_words(self):
        self.assertEqual(Rating.from_rating_str("g"), Rating.safe)
        self.assertEqual(Rating.from_rating_str("sensitive"), Rating.safe)
        self.assertEqual(Rating.from_rating_str("Q"), Rating.questionable)
        self.assertEqual(Rating.from_rating_str("explicit"), Rating.explicit)

    def test_unknown_fallback(self):
        self.assertEqual(Rating.from_rating_str("x"), Rating.unknown)
        self.assertEqual(Rating.from_rating_str(""), Rating.unknown)

    def test_ratings_are_totally_ordered(self):
        ratings = sorted([Rating.unknown, Rating.safe, Rating.explicit, Rating.questionable])
        self.assertEqual(len(set(ratings)), 4)
        self.assertEqual(ratings, sorted(ratings))


class TestExtension(unittest.TestCase):
    def test_guess_format(self):
        self.assertEqual(Extension.guess_format("jpeg"), Extension.jpg)
        self.assertEqual(Extension.guess_format(".PNG"), Extension.png)
        self.assertEqual(Extension.guess_format("zip"), Extension.ugoira)
        self.assertEqual(Extension.guess_format("exe"), Extension.unknown)
        self.assertEqual(str(Extension.unknown), "bin")

    def test_from_url_ignores_query(self):
        self.assertEqual(Extension.from_url("https://x.org/a/b.webm?download=1"), Extension.webm)
        self.assertEqual(Extension.from_url("https://x.org/a/noext"), Extension.unknown)

    def test_video_classification(self):
        for ext in (Extension.gif, Extension.webm, Extension.mp4, Extension.ugoira):
            self.assertTrue(ext.is_video)
        for ext in (Extension.jpg, Extension.png, Extension.webp, Extension.avif):
            self.assertFalse(ext.is_video)


class TestTag(unittest.TestCase):
    def test_equality_by_text(self):
        self.assertEqual(Tag("cat", TagType.general), Tag("cat", TagType.meta))
        self.assertEqual(len({Tag("cat", TagType.general), Tag("cat", TagType.any)}), 1)

    def test_prompt_tags(self):
        self.assertTrue(Tag("smile", TagType.general).is_prompt_tag)
        self.assertTrue(Tag("fox", TagType.species).is_prompt_tag)
        self.assertFalse(Tag("someone", TagType.author).is_prompt_tag)
        self.assertFalse(Tag("highres", TagType.meta).is_prompt_tag)


class TestImageBoards(unittest.TestCase):
    def test_from_str(self):
        self.assertEqual(ImageBoards.from_str("Danbooru"), ImageBoards.danbooru)
        self.assertEqual(ImageBoards.from_str("realbooru"), ImageBoards.gelbooru_020)
        with self.assertRaises(InvalidImageboardError):
            ImageBoards.from_str("myspace")


class TestPost(unittest.TestCase):
    def test_identity_and_order_by_id(self):
        a = make_post(5, tags=("a",))
        b = make_post(5, tags=("b",), rating=Rating.explicit)
        c = make_post(9)
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertLess(a, c)
        self.assertEqual(sorted([c, a], reverse=True)[0].id, 9)

    def test_requires_url_and_md5(self):
        with self.assertRaises(MissingFieldError):
            Post(id=1, url="", md5="abc", extension=Extension.jpg, rating=Rating.safe)
        with self.assertRaises(MissingFieldError):
            Post(id=1, url="https://x/1.jpg", md5="", extension=Extension.jpg, rating=Rating.safe)

    def test_file_names(self):
        post = make_post(42, extension=Extension.png)
        self.assertEqual(post.file_name(NameType.id), "42.png")
        self.assertEqual(post.file_name(NameType.md5), f"{42:032x}.png")
        self.assertEqual(post.seq_file_name(4), "0042.png")


class TestPostQueue(unittest.TestCase):
    def test_prepare_truncates_without_reordering(self):
        posts = [make_post(i) for i in (9, 3, 7, 1)]
        queue = PostQueue(imageboard=ImageBoards.danbooru, client=None, posts=posts, tags=["a"])
        queue.prepare(2)
        self.assertEqual([p.id for p in queue.posts], [9, 3])

        queue.prepare(None)
        self.assertEqual(len(queue), 2)


if __name__ == "__main__":
    unittest.main()
