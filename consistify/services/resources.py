# consistify/services/resources.py
from typing import List
from urllib.parse import quote

from consistify.schemas.task import Resource


def _search(base: str, *terms: str) -> str:
    return base + quote(" ".join(t for t in terms if t))


def resources_for_task(topic: str, skill_name: str) -> List[Resource]:
    """Deterministic learning links for one day's topic within a skill."""
    skill = (skill_name or "").lower()
    resources = [
        Resource(
            type="video",
            title=f"{topic} - Tutorial",
            url=_search("https://www.youtube.com/results?search_query=", skill_name, topic, "tutorial beginner"),
            creator="YouTube",
        )
    ]

    if "python" in skill:
        resources += [
            Resource(type="tutorial", title="Interactive Python Tutorial",
                     url="https://www.freecodecamp.org/learn/scientific-computing-with-python/",
                     creator="freeCodeCamp"),
            Resource(type="docs", title="Python Documentation",
                     url="https://docs.python.org/3/", creator="Python.org"),
        ]
    elif "javascript" in skill or "js" in skill:
        resources += [
            Resource(type="tutorial", title="JavaScript Algorithms and Data Structures",
                     url="https://www.freecodecamp.org/learn/javascript-algorithms-and-data-structures/",
                     creator="freeCodeCamp"),
            Resource(type="docs", title="MDN JavaScript Docs",
                     url="https://developer.mozilla.org/en-US/docs/Web/JavaScript", creator="MDN"),
        ]
    elif "react" in skill:
        resources += [
            Resource(type="tutorial", title="React Tutorial", url="https://react.dev/learn", creator="React"),
            Resource(type="docs", title="React Documentation", url="https://react.dev/", creator="React"),
        ]
    elif any(word in skill for word in ("guitar", "piano", "singing", "music")):
        resources.append(Resource(type="tutorial", title="Music Theory Lessons",
                                  url="https://www.musictheory.net/lessons", creator="MusicTheory.net"))
    elif "excel" in skill:
        resources.append(Resource(type="tutorial", title="Excel Training",
                                  url="https://support.microsoft.com/en-us/excel", creator="Microsoft"))
    elif "powerbi" in skill or "power bi" in skill:
        resources.append(Resource(type="tutorial", title="Power BI Learning Path",
                                  url="https://learn.microsoft.com/en-us/power-bi/", creator="Microsoft Learn"))
    elif "photoshop" in skill or "design" in skill:
        resources.append(Resource(type="tutorial", title="Adobe Tutorials",
                                  url="https://helpx.adobe.com/photoshop/tutorials.html", creator="Adobe"))
    elif "cooking" in skill or "cook" in skill:
        resources.append(Resource(type="article", title="Cooking Basics",
                                  url="https://www.allrecipes.com/recipes/17562/everyday-cooking/quick-and-easy/",
                                  creator="AllRecipes"))
    else:
        resources.append(Resource(
            type="tutorial",
            title=f"Learn {topic}",
            url=_search("https://www.google.com/search?q=", skill_name, topic, "free course tutorial"),
            creator="Web Search",
        ))

    return resources
