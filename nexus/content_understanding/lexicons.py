"""
Fixed heuristic tables used by content analysis.

Category and emotion tables are ordered sequences so that tie-breaking
follows table order.
"""

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

CATEGORY_KEYWORDS = (
    ('news', ('news', 'article', 'breaking', 'report', 'journalist')),
    ('education', ('learn', 'tutorial', 'course', 'study', 'education', 'academic')),
    ('entertainment', ('movie', 'music', 'game', 'fun', 'entertainment', 'celebrity')),
    ('technology', ('tech', 'software', 'computer', 'ai', 'programming', 'developer')),
    ('business', ('business', 'finance', 'market', 'economy', 'investment', 'startup')),
    ('health', ('health', 'medical', 'doctor', 'fitness', 'wellness', 'nutrition')),
    ('sports', ('sport', 'game', 'team', 'player', 'championship', 'athletic')),
    ('travel', ('travel', 'trip', 'vacation', 'destination', 'hotel', 'flight')),
    ('food', ('food', 'recipe', 'cooking', 'restaurant', 'chef', 'cuisine')),
    ('fashion', ('fashion', 'style', 'clothing', 'designer', 'trend', 'beauty')),
    ('science', ('science', 'research', 'study', 'experiment', 'discovery', 'theory')),
    ('politics', ('politics', 'government', 'election', 'policy', 'politician', 'vote')),
    ('arts', ('art', 'painting', 'museum', 'gallery', 'poetry', 'sculpture')),
    ('productivity', ('productivity', 'workflow', 'calendar', 'task', 'schedule', 'planner')),
    ('social', ('social', 'friend', 'community', 'forum', 'follower', 'chat')),
)

DEFAULT_CATEGORY = 'general'

STOP_WORDS = frozenset(ENGLISH_STOP_WORDS) | frozenset((
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with',
    'by', 'from', 'up', 'about', 'into', 'through', 'during', 'before', 'after', 'above',
    'below', 'over', 'under', 'also', 'just', 'like', 'really', 'said', 'says', 'new',
))

# AFINN-style valence lexicon (-5..5)
SENTIMENT_LEXICON = {
    'amazing': 4, 'awesome': 4, 'beautiful': 3, 'best': 3, 'brilliant': 4, 'calm': 2,
    'celebrate': 3, 'cheer': 2, 'clean': 2, 'confident': 2, 'cool': 1, 'delight': 3,
    'delighted': 3, 'easy': 1, 'effective': 2, 'enjoy': 2, 'excellent': 3, 'excited': 3,
    'exciting': 3, 'fantastic': 4, 'fun': 4, 'glad': 3, 'good': 3, 'great': 3, 'happy': 3,
    'helpful': 2, 'hope': 2, 'hopeful': 2, 'improve': 2, 'improved': 2, 'inspiring': 3,
    'joy': 3, 'like': 2, 'love': 3, 'lovely': 3, 'nice': 3, 'perfect': 3, 'pleased': 3,
    'positive': 2, 'powerful': 2, 'reliable': 2, 'safe': 1, 'secure': 2, 'success': 2,
    'successful': 3, 'superb': 5, 'support': 2, 'thank': 2, 'thanks': 2, 'win': 4,
    'winner': 4, 'wonderful': 4, 'wow': 4,
    'abuse': -3, 'afraid': -2, 'angry': -3, 'annoyed': -2, 'anxious': -2, 'attack': -1,
    'awful': -3, 'bad': -3, 'broken': -1, 'crash': -2, 'crisis': -3, 'damage': -3,
    'danger': -2, 'dead': -3, 'death': -2, 'depressed': -2, 'disaster': -2, 'disgusted': -3,
    'error': -2, 'fail': -2, 'failed': -2, 'failure': -2, 'fear': -2, 'fraud': -4,
    'furious': -3, 'hate': -3, 'horrible': -3, 'hurt': -2, 'kill': -3, 'killed': -3,
    'lose': -3, 'loss': -3, 'mad': -3, 'negative': -2, 'pain': -2, 'panic': -3,
    'poor': -2, 'problem': -2, 'rage': -2, 'sad': -2, 'scared': -2, 'scandal': -3,
    'shocked': -2, 'sick': -2, 'terrible': -3, 'terrified': -3, 'threat': -2,
    'tragedy': -2, 'ugly': -3, 'unhappy': -2, 'war': -2, 'worried': -3, 'worse': -3,
    'worst': -3, 'wrong': -2,
}

EMOTION_LEXICONS = (
    ('joy', ('happy', 'joy', 'excited', 'pleased', 'delighted', 'cheerful', 'glad')),
    ('sadness', ('sad', 'depressed', 'unhappy', 'melancholy', 'grief', 'lonely')),
    ('anger', ('angry', 'furious', 'rage', 'mad', 'irritated', 'outraged')),
    ('fear', ('afraid', 'scared', 'terrified', 'anxious', 'worried', 'panic')),
    ('surprise', ('surprised', 'amazed', 'astonished', 'shocked', 'unexpected')),
    ('disgust', ('disgusted', 'revolted', 'repulsed', 'sickened', 'gross')),
    ('trust', ('trust', 'confident', 'reliable', 'secure', 'dependable')),
    ('anticipation', ('anticipate', 'expect', 'hopeful', 'eager', 'upcoming')),
)

# (polarity, dominant emotion) -> tone
EMOTIONAL_TONES = {
    ('positive', 'joy'): 'uplifting',
    ('positive', 'trust'): 'reassuring',
    ('positive', 'anticipation'): 'optimistic',
    ('positive', 'surprise'): 'exciting',
    ('negative', 'sadness'): 'somber',
    ('negative', 'anger'): 'hostile',
    ('negative', 'fear'): 'alarming',
    ('negative', 'disgust'): 'repellent',
    ('negative', 'surprise'): 'shocking',
    ('neutral', 'neutral'): 'neutral',
}

SOCIAL_SHARE_HOSTS = (
    'twitter.com', 'x.com', 'facebook.com', 'linkedin.com', 'reddit.com', 'pinterest.com',
)

LANGUAGE_NAMES = {
    'en': 'english', 'es': 'spanish', 'fr': 'french', 'de': 'german', 'it': 'italian',
    'pt': 'portuguese', 'nl': 'dutch', 'ru': 'russian', 'ja': 'japanese', 'ko': 'korean',
    'zh-cn': 'chinese', 'zh-tw': 'chinese', 'ar': 'arabic', 'hi': 'hindi', 'sv': 'swedish',
    'pl': 'polish', 'tr': 'turkish', 'da': 'danish', 'no': 'norwegian', 'fi': 'finnish',
}
