# aptis_practice/core/static_tasks.py
"""
Fixed Writing and Speaking tasks.

These two sections are never generated remotely; the same three tasks are
served every time (only the picture seed of speaking task 2 changes).
"""

import random
from typing import List

from .schemas import SpeakingTask, WritingTask

WRITING_TASKS = [
    {
        "id": 1,
        "instructions": "You are joining a new sports club. Fill in the form. You have 3 minutes.\n\n"
                        "- Full Name:\n- Sport of interest:\n- Previous experience (one sentence):"
    },
    {
        "id": 2,
        "instructions": "You are a member of a travel club. You are talking to three other members in the "
                        "travel club chat room. Answer their questions. You have 10 minutes.\n\n"
                        "Alex: Hi! Welcome to the club. What's the most interesting place you've ever visited?\n\n"
                        "Sam: I'm planning a trip to Italy. Any recommendations on what to see?\n\n"
                        "Jo: What kind of holidays do you enjoy the most? (e.g., beach, city break, adventure)"
    },
    {
        "id": 3,
        "instructions": "You recently bought an item online that arrived damaged. Write an email to the "
                        "company's customer service. Explain the problem and tell them what you want them "
                        "to do. Write about 120-150 words. You have 20 minutes."
    },
]

SPEAKING_TASKS = [
    {
        "id": 1,
        "instructions": "Tell me about your hobbies and interests. You have 45 seconds to speak.",
        "preparationSeconds": 15,
        "recordingSeconds": 45
    },
    {
        "id": 2,
        "instructions": "Describe this picture in as much detail as you can. What is happening? "
                        "What are the people doing? You have 45 seconds.",
        "preparationSeconds": 30,
        "recordingSeconds": 45,
        "imagePromptUrl": "https://picsum.photos/seed/{seed}/600/400"
    },
    {
        "id": 3,
        "instructions": "Now, I will ask you two questions about the picture. First, what do you think the "
                        "people will do next? Second, describe a time you participated in a similar activity.",
        "preparationSeconds": 30,
        "recordingSeconds": 60
    },
]


def get_writing_tasks() -> List[WritingTask]:
    """The three fixed writing tasks"""
    return [WritingTask.model_validate(task) for task in WRITING_TASKS]


def get_speaking_tasks() -> List[SpeakingTask]:
    """The three fixed speaking tasks with a fresh placeholder picture"""
    seed = random.random()
    tasks = []
    for task in SPEAKING_TASKS:
        data = dict(task)
        if "imagePromptUrl" in data:
            data["imagePromptUrl"] = data["imagePromptUrl"].format(seed=seed)
        tasks.append(SpeakingTask.model_validate(data))
    return tasks
